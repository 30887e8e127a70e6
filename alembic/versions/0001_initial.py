"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("reset_password_token", sa.String(length=512), nullable=True),
        sa.Column("reset_password_expires", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "tours",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("image", sa.String(length=1024), nullable=False),
        sa.Column("package_type", sa.String(length=20), nullable=False, server_default="standard"),
        sa.Column("departure", sa.String(length=200), nullable=True),
        sa.Column("accommodation", sa.String(length=200), nullable=False),
        sa.Column("dates", sa.String(length=200), nullable=False),
        sa.Column("price", sa.String(length=100), nullable=False),
        sa.Column("is_coming", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("itinerary", sa.JSON(), nullable=False),
        sa.Column("gallery", sa.JSON(), nullable=False),
        sa.Column("inclusions", sa.JSON(), nullable=False),
        sa.Column("exclusions", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        *_timestamps(),
    )
    op.create_index("ix_tours_category", "tours", ["category"], unique=False)
    op.create_index("ix_tours_status", "tours", ["status"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tour_id", sa.String(length=36), sa.ForeignKey("tours.id"), nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("package_type", sa.String(length=20), nullable=False, server_default="standard"),
        sa.Column("customer_name", sa.String(length=200), nullable=False),
        sa.Column("customer_email", sa.String(length=320), nullable=False),
        sa.Column("customer_phone", sa.String(length=50), nullable=False),
        sa.Column("number_of_travelers", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_intent_id", sa.String(length=255), nullable=True),
        sa.Column("booking_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("documents", sa.JSON(), nullable=False),
        sa.Column("application_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("application_closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("application_closed_by", sa.String(length=36), nullable=True),
        sa.Column("user_application_number", sa.String(length=20), nullable=True, unique=True),
        sa.Column("user_application_submitted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("user_application_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_application_form", sa.JSON(), nullable=True),
        sa.Column("user_application_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("user_application_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_application_reviewed_by", sa.String(length=36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_bookings_tour_id", "bookings", ["tour_id"], unique=False)
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"], unique=False)
    op.create_index("ix_bookings_customer_email", "bookings", ["customer_email"], unique=False)
    op.create_index("ix_bookings_payment_intent_id", "bookings", ["payment_intent_id"], unique=False)

    op.create_table(
        "dependants",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("relationship", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.String(length=20), nullable=True),
        sa.Column("passport_number", sa.String(length=50), nullable=True),
        sa.Column("application_number", sa.String(length=20), nullable=True, unique=True),
        sa.Column("application_form", sa.JSON(), nullable=True),
        sa.Column("documents", sa.JSON(), nullable=False),
        sa.Column("application_submitted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("application_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("application_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("application_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("application_reviewed_by", sa.String(length=36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_dependants_booking_id", "dependants", ["booking_id"], unique=False)
    op.create_index("ix_dependants_user_id", "dependants", ["user_id"], unique=False)

    op.create_table(
        "user_dependant_profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("relationship", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.String(length=20), nullable=True),
        sa.Column("passport_number", sa.String(length=50), nullable=True),
        sa.Column("country_of_nationality", sa.String(length=100), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("father_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("marital_status", sa.String(length=30), nullable=True),
        sa.Column("country_of_birth", sa.String(length=100), nullable=True),
        sa.Column("city_of_birth", sa.String(length=100), nullable=True),
        sa.Column("profession", sa.String(length=100), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_user_dependant_profiles_user_id", "user_dependant_profiles", ["user_id"], unique=False)

    op.create_table(
        "reviews",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tour_id", sa.String(length=36), sa.ForeignKey("tours.id"), nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_name", sa.String(length=200), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        *_timestamps(),
    )
    op.create_index("ix_reviews_tour_id", "reviews", ["tour_id"], unique=False)
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"], unique=False)
    op.create_index("ix_reviews_status", "reviews", ["status"], unique=False)

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=300), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("kind", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("related_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="queued"),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"], unique=False)
    op.create_index("ix_email_logs_kind", "email_logs", ["kind"], unique=False)
    op.create_index("ix_email_logs_status", "email_logs", ["status"], unique=False)


def downgrade() -> None:
    op.drop_table("email_logs")
    op.drop_table("reviews")
    op.drop_table("user_dependant_profiles")
    op.drop_table("dependants")
    op.drop_table("bookings")
    op.drop_table("tours")
    op.drop_table("users")
