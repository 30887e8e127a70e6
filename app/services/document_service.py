"""Attachments on bookings and dependants.

Each parent keeps a single ``documents`` JSON list of entries tagged by slot:

    {"id", "slot", "name", "url", "publicId", "uploadedAt"}

Single slots hold at most one entry; uploading into an occupied single slot
replaces (and remotely deletes) the previous file. List slots append.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, UpstreamServiceError, ValidationError
from app.models.booking import Booking
from app.models.dependant import Dependant
from app.services.storage_service import ObjectStorage, decode_payload

logger = logging.getLogger(__name__)


class DocumentSlot(str, Enum):
    PERSONAL_PASSPORT_PICTURE = "personal_passport_picture"
    INTERNATIONAL_PASSPORT = "international_passport"
    PASSPORT_PHOTO = "passport_photo"
    SUPPORTING_DOCUMENT = "supporting_document"
    GENERAL = "general"


# lookup order when resolving a document id
SLOT_PRIORITY = (
    DocumentSlot.PERSONAL_PASSPORT_PICTURE,
    DocumentSlot.INTERNATIONAL_PASSPORT,
    DocumentSlot.PASSPORT_PHOTO,
    DocumentSlot.SUPPORTING_DOCUMENT,
    DocumentSlot.GENERAL,
)
SINGLE_SLOTS = frozenset({
    DocumentSlot.PERSONAL_PASSPORT_PICTURE,
    DocumentSlot.INTERNATIONAL_PASSPORT,
    DocumentSlot.PASSPORT_PHOTO,
})
DEFAULT_NAMES = {
    DocumentSlot.PERSONAL_PASSPORT_PICTURE: "Personal Passport Picture",
    DocumentSlot.INTERNATIONAL_PASSPORT: "International Passport",
    DocumentSlot.PASSPORT_PHOTO: "Passport Photo",
}


@dataclass(frozen=True)
class DocumentRecord:
    id: str
    slot: str
    name: str
    url: str
    public_id: str
    uploaded_at: str

    @classmethod
    def from_entry(cls, entry: dict) -> "DocumentRecord":
        return cls(
            id=entry.get("id", ""),
            slot=entry.get("slot", DocumentSlot.GENERAL.value),
            name=entry.get("name", ""),
            url=entry.get("url", ""),
            public_id=entry.get("publicId", ""),
            uploaded_at=entry.get("uploadedAt", ""),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "slot": self.slot,
            "name": self.name,
            "url": self.url,
            "publicId": self.public_id,
            "uploadedAt": self.uploaded_at,
        }


def parse_slot(value: str | None) -> DocumentSlot:
    try:
        return DocumentSlot(value)
    except ValueError:
        allowed = ", ".join(s.value for s in DocumentSlot)
        raise ValidationError(f"Valid documentType is required ({allowed})")


def folder_for(parent, slot: DocumentSlot) -> str:
    if isinstance(parent, Dependant):
        return f"dependants/{parent.id}"
    if isinstance(parent, Booking):
        if slot == DocumentSlot.GENERAL:
            return f"bookings/{parent.id}"
        return f"bookings/{parent.id}/user"
    raise TypeError(f"{type(parent).__name__} cannot hold documents")


def _entries(parent) -> list[dict]:
    return list(parent.documents or [])


def get_slot(parent, slot: DocumentSlot | str) -> list[DocumentRecord]:
    slot = DocumentSlot(slot)
    return [DocumentRecord.from_entry(e) for e in _entries(parent) if e.get("slot") == slot.value]


def documents_by_slot(parent) -> dict:
    """Grouped view for responses: single slots map to one record (or None), list slots to a list."""
    out = {}
    for slot in SLOT_PRIORITY:
        records = [r.to_dict() for r in get_slot(parent, slot)]
        out[slot.value] = (records[-1] if records else None) if slot in SINGLE_SLOTS else records
    return out


def find_document(parent, document_id: str) -> DocumentRecord | None:
    """Match by id or storage public id, searching slots in priority order."""
    entries = _entries(parent)
    for slot in SLOT_PRIORITY:
        for e in entries:
            if e.get("slot") == slot.value and document_id in (e.get("id"), e.get("publicId")):
                return DocumentRecord.from_entry(e)
    return None


def _remote_delete(storage: ObjectStorage, public_id: str) -> bool:
    if not public_id:
        return True
    try:
        storage.delete(public_id)
        return True
    except UpstreamServiceError as e:
        logger.warning("Failed to delete stored object %s: %s", public_id, e.message)
        return False


def attach(db: Session, storage: ObjectStorage, parent, data: bytes | str, filename: str,
           content_type: str | None = None, slot: DocumentSlot | str = DocumentSlot.GENERAL,
           name: str | None = None) -> DocumentRecord:
    slot = parse_slot(slot.value if isinstance(slot, DocumentSlot) else slot)
    if slot == DocumentSlot.SUPPORTING_DOCUMENT and not (name or "").strip():
        raise ValidationError("Document name is required for supporting documents")
    raw, ctype = decode_payload(data, content_type)
    if not raw:
        raise ValidationError("File is empty")
    if len(raw) > settings.UPLOAD_MAX_BYTES:
        raise ValidationError(f"File exceeds the {settings.UPLOAD_MAX_BYTES // (1024 * 1024)}MB limit")

    stored = storage.upload(raw, folder_for(parent, slot), filename, ctype)
    record = DocumentRecord(
        id=str(uuid.uuid4()),
        slot=slot.value,
        name=(name or "").strip() or DEFAULT_NAMES.get(slot) or filename or "Document",
        url=stored.url,
        public_id=stored.public_id,
        uploaded_at=datetime.now(timezone.utc).isoformat(),
    )

    entries = _entries(parent)
    if slot in SINGLE_SLOTS:
        for old in [e for e in entries if e.get("slot") == slot.value]:
            _remote_delete(storage, old.get("publicId", ""))
        entries = [e for e in entries if e.get("slot") != slot.value]
    entries.append(record.to_dict())
    # reassign so SQLAlchemy sees the JSON column as dirty
    parent.documents = entries
    db.commit()
    logger.info("Attached %s document %s to %s %s", slot.value, record.id, type(parent).__name__, parent.id)
    return record


def detach(db: Session, storage: ObjectStorage, parent, document_id: str) -> DocumentRecord:
    record = find_document(parent, document_id)
    if record is None:
        raise NotFoundError("Document not found")
    _remote_delete(storage, record.public_id)
    key = (record.id, record.public_id)
    parent.documents = [e for e in _entries(parent) if (e.get("id", ""), e.get("publicId", "")) != key]
    db.commit()
    logger.info("Detached document %s from %s %s", record.id, type(parent).__name__, parent.id)
    return record


def purge(storage: ObjectStorage, parent) -> int:
    """Best-effort remote delete of every attachment. Returns how many deletes succeeded."""
    return sum(1 for e in _entries(parent) if _remote_delete(storage, e.get("publicId", "")))
