from fastapi import APIRouter, Depends, File, UploadFile
from app.api.deps import get_storage, require_admin
from app.core.config import settings
from app.core.errors import ValidationError
from app.core.security import Credential
from app.services.storage_service import ObjectStorage

router = APIRouter(tags=["upload"])


@router.post("/upload")
def upload(file: UploadFile = File(...), folder: str = "tours",
           storage: ObjectStorage = Depends(get_storage),
           admin: Credential = Depends(require_admin)):
    """Tour images and gallery media."""
    data = file.file.read()
    if not data:
        raise ValidationError("No file provided")
    if len(data) > settings.UPLOAD_MAX_BYTES:
        raise ValidationError("File too large")
    stored = storage.upload(data, folder, file.filename or "upload", file.content_type)
    return {"success": True, "data": {"url": stored.url, "publicId": stored.public_id}}
