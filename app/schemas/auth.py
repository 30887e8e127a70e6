from pydantic import BaseModel, Field, field_validator
from typing import Optional


def _email(v: str) -> str:
    v = (v or "").strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("A valid email is required")
    return v


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str  # plain str to allow .local and other dev domains
    password: str = Field(min_length=6)
    phone: Optional[str] = None

    check_email = field_validator("email")(_email)


class LoginRequest(BaseModel):
    email: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    password: str


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str = Field(min_length=6)


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
