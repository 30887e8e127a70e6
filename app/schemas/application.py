from pydantic import BaseModel
from typing import Literal, Optional

Gender = Literal["male", "female", "other"]


class ApplicationForm(BaseModel):
    """Visa-style application form; dates are ISO strings as entered by the client."""

    countryOfNationality: Optional[str] = None
    firstName: Optional[str] = None
    fatherName: Optional[str] = None
    lastName: Optional[str] = None
    gender: Optional[Gender] = None
    maritalStatus: Optional[str] = None
    dateOfBirth: Optional[str] = None
    countryOfBirth: Optional[str] = None
    cityOfBirth: Optional[str] = None
    profession: Optional[str] = None
    passportType: Optional[str] = None
    passportNumber: Optional[str] = None
    passportIssuePlace: Optional[str] = None
    passportIssueDate: Optional[str] = None
    passportExpiryDate: Optional[str] = None
    expectedArrivalDate: Optional[str] = None
    expectedDepartureDate: Optional[str] = None
    residenceCountry: Optional[str] = None
    residenceCity: Optional[str] = None
    residenceZipCode: Optional[str] = None
    residenceAddress: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: Optional[str] = None


class ApplicationsAction(BaseModel):
    action: str  # close|reopen
