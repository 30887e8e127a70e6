from pydantic import BaseModel, Field
from typing import Literal, Optional


class DependantCreate(BaseModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    dateOfBirth: Optional[str] = None
    passportNumber: Optional[str] = None
    # pre-fill from a saved profile owned by the caller
    profileId: Optional[str] = None


class DependantProfileIn(BaseModel):
    name: str = Field(min_length=1)
    relationship: str = Field(min_length=1)
    dateOfBirth: Optional[str] = None
    passportNumber: Optional[str] = None
    countryOfNationality: Optional[str] = None
    firstName: Optional[str] = None
    fatherName: Optional[str] = None
    lastName: Optional[str] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    maritalStatus: Optional[str] = None
    countryOfBirth: Optional[str] = None
    cityOfBirth: Optional[str] = None
    profession: Optional[str] = None
