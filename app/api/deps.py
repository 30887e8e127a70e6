from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.access import ADMIN, authorize, enforce
from app.core.errors import AuthenticationError
from app.core.security import Credential, decode_credential
from app.db.session import get_db
from app.models.user import User
from app.services.notification_service import Notifier
from app.services.payment_service import PaymentGateway
from app.services.storage_service import ObjectStorage

bearer = HTTPBearer(auto_error=False)


def get_optional_credential(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Credential | None:
    """No header means anonymous; a header that fails to decode is still a 401."""
    if not creds:
        return None
    return decode_credential(creds.credentials)


def get_credential(credential: Credential | None = Depends(get_optional_credential)) -> Credential:
    if credential is None:
        raise AuthenticationError("Unauthorized")
    return credential


def require_admin(credential: Credential = Depends(get_credential)) -> Credential:
    enforce(authorize(credential, required_role=ADMIN))
    return credential


def get_current_user(
    credential: Credential = Depends(get_credential),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, credential.user_id)
    if not user:
        raise AuthenticationError("User not found")
    return user


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def get_payments(request: Request) -> PaymentGateway:
    return request.app.state.payments


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier
