from pydantic import BaseModel, Field
from typing import Optional


class ContactRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str
    phone: Optional[str] = None
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)


class UserRoleUpdate(BaseModel):
    role: str
