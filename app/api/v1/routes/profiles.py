import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_credential
from app.core.access import authorize, enforce, user_owner
from app.core.errors import NotFoundError
from app.core.security import Credential
from app.models.dependant_profile import UserDependantProfile
from app.schemas.dependant import DependantProfileIn
from app.services.payload_service import profile_out

router = APIRouter(tags=["dependant-profiles"])

# request field -> column
_FIELDS = {
    "name": "name",
    "relationship": "relationship",
    "dateOfBirth": "date_of_birth",
    "passportNumber": "passport_number",
    "countryOfNationality": "country_of_nationality",
    "firstName": "first_name",
    "fatherName": "father_name",
    "lastName": "last_name",
    "gender": "gender",
    "maritalStatus": "marital_status",
    "countryOfBirth": "country_of_birth",
    "cityOfBirth": "city_of_birth",
    "profession": "profession",
}


def _apply(p: UserDependantProfile, body: DependantProfileIn) -> None:
    data = body.model_dump()
    for field, column in _FIELDS.items():
        setattr(p, column, data.get(field))


def owned_profile(db: Session, profile_id: str, credential: Credential) -> UserDependantProfile:
    p = db.get(UserDependantProfile, profile_id)
    if not p:
        raise NotFoundError("Dependant profile not found")
    enforce(authorize(credential, owner=user_owner(p.user_id)))
    return p


@router.get("/user/dependants")
def list_profiles(db: Session = Depends(get_db), credential: Credential = Depends(get_credential)):
    rows = (
        db.query(UserDependantProfile)
        .filter(UserDependantProfile.user_id == credential.user_id)
        .order_by(UserDependantProfile.created_at.desc())
        .all()
    )
    return {"success": True, "data": [profile_out(p) for p in rows]}


@router.post("/user/dependants", status_code=201)
def create_profile(body: DependantProfileIn, db: Session = Depends(get_db),
                   credential: Credential = Depends(get_credential)):
    p = UserDependantProfile(id=str(uuid.uuid4()), user_id=credential.user_id)
    _apply(p, body)
    db.add(p)
    db.commit()
    return {"success": True, "data": profile_out(p)}


@router.get("/user/dependants/{profile_id}")
def get_profile(profile_id: str, db: Session = Depends(get_db), credential: Credential = Depends(get_credential)):
    return {"success": True, "data": profile_out(owned_profile(db, profile_id, credential))}


@router.put("/user/dependants/{profile_id}")
def update_profile(profile_id: str, body: DependantProfileIn, db: Session = Depends(get_db),
                   credential: Credential = Depends(get_credential)):
    p = owned_profile(db, profile_id, credential)
    _apply(p, body)
    db.commit()
    return {"success": True, "data": profile_out(p)}


@router.delete("/user/dependants/{profile_id}")
def delete_profile(profile_id: str, db: Session = Depends(get_db), credential: Credential = Depends(get_credential)):
    p = owned_profile(db, profile_id, credential)
    db.delete(p)
    db.commit()
    return {"success": True, "message": "Dependant profile deleted"}
