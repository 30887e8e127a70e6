from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_current_user
from app.core.errors import ValidationError
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.schemas.auth import ChangePasswordRequest, ProfileUpdate
from app.services.payload_service import user_out

router = APIRouter(tags=["users"])


@router.get("/users/me")
def me(me: User = Depends(get_current_user)):
    return {"success": True, "data": user_out(me)}


@router.patch("/users/me")
def update_me(body: ProfileUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    if body.name is not None:
        if not body.name.strip():
            raise ValidationError("Name cannot be empty")
        me.name = body.name.strip()
    if body.phone is not None:
        me.phone = body.phone.strip() or None
    db.commit()
    return {"success": True, "data": user_out(me)}


@router.post("/users/me/change-password")
def change_password(body: ChangePasswordRequest, db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    if not verify_password(body.currentPassword, me.password_hash):
        raise ValidationError("Current password is incorrect")
    me.password_hash = hash_password(body.newPassword)
    db.commit()
    return {"success": True, "message": "Password updated"}
