import logging
import uuid
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import ForgotPasswordRequest, LoginRequest, RegisterRequest, ResetPasswordRequest
from app.models.user import User
from app.core.config import settings
from app.core.errors import AuthenticationError, ConflictError, ValidationError
from app.core.security import (
    create_access_token,
    create_reset_token,
    hash_password,
    verify_password,
    verify_reset_token,
)
from app.api.deps import get_notifier
from app.services.notification_service import NotificationKind, Notifier
from app.services.payload_service import user_out

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

MIN_PASSWORD_LENGTH = 6


def _token_for(user: User) -> str:
    return create_access_token(user.id, user.email, user.role)


def _aware(dt: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; stored values are always UTC
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


@router.post("/auth/register", status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
    if db.query(User).filter(User.email == body.email).first():
        raise ConflictError("User already exists")
    user = User(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        email=body.email,
        password_hash=hash_password(body.password),
        phone=body.phone,
        role="user",
    )
    db.add(user)
    db.commit()
    logger.info("Registered user %s", user.id)

    notifier.notify(NotificationKind.SIGNUP_WELCOME, user.email, {"userName": user.name}, related_id=user.id)
    return {"success": True, "data": {"token": _token_for(user), "user": user_out(user)}}


@router.post("/auth/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return {"success": True, "data": {"token": _token_for(user), "user": user_out(user)}}


@router.post("/auth/forgot-password")
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db),
                    notifier: Notifier = Depends(get_notifier)):
    # same answer whether or not the account exists
    message = "If an account with that email exists, we have sent a password reset link."
    email = (body.email or "").strip().lower()
    if not email:
        raise ValidationError("Email is required")
    user = db.query(User).filter(User.email == email).first()
    if not user:
        return {"success": True, "message": message}

    token = create_reset_token()
    user.reset_password_token = token
    user.reset_password_expires = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    db.commit()

    result = notifier.notify(
        NotificationKind.PASSWORD_RESET, user.email, {"userName": user.name, "resetToken": token}, related_id=user.id
    )
    if not result.success:
        logger.warning("Password reset email for user %s not delivered: %s", user.id, result.error)
    return {"success": True, "message": message}


@router.post("/auth/reset-password")
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    if not body.token or not body.password:
        raise ValidationError("Token and password are required")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("Password must be at least 6 characters long")
    if not verify_reset_token(body.token):
        raise ValidationError("Invalid or expired reset token")

    user = db.query(User).filter(User.reset_password_token == body.token).first()
    expires = _aware(user.reset_password_expires) if user else None
    if not user or not expires or expires < datetime.now(timezone.utc):
        raise ValidationError("Invalid or expired reset token")

    user.password_hash = hash_password(body.password)
    user.reset_password_token = None
    user.reset_password_expires = None
    db.commit()
    logger.info("Password reset for user %s", user.id)
    return {"success": True, "message": "Password has been reset successfully"}
