from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Naasir Travel API"
    # Comma-separated origins for CORS (e.g. https://naasirtravel.com,https://admin.naasirtravel.com). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    # Email: SendGrid when SENDGRID_API_KEY is set, SMTP otherwise
    EMAIL_ENABLED: bool = True
    EMAIL_DELIVERY_MODE: str = "inline"  # inline|worker (worker hands delivery to Celery)
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "bookings@naasirtravel.local"
    SMTP_STARTTLS: bool = False

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    ADMIN_EMAIL: str = "info@naasirtravel.com"
    CLIENT_BASE_URL: str = "http://localhost:3000"  # links in emails

    # Uploaded documents
    STORAGE_BACKEND: str = "local"  # local|gcs
    STORAGE_LOCAL_DIR: str = "./data/uploads"
    STORAGE_PUBLIC_BASE_URL: str = "/media"
    STORAGE_ROOT_FOLDER: str = "naasirtravel"
    GCS_BUCKET_NAME: str = ""
    UPLOAD_MAX_BYTES: int = 10 * 1024 * 1024

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    PAYMENT_CURRENCY: str = "usd"

    # permissive: any status may be set from any other; forward_only: pending -> submitted -> under_review -> accepted|rejected
    APPLICATION_TRANSITION_POLICY: str = "permissive"

    # start_api.py seeding
    SEED_ADMIN_EMAIL: str = "admin@naasirtravel.com"
    SEED_ADMIN_PASSWORD: str = "admin12345"
    SEED_SAMPLE_TOURS: bool = True


settings = Settings()
