import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_credential, get_current_user
from app.core.access import authorize, enforce, user_owner
from app.core.errors import NotFoundError, ValidationError
from app.core.security import Credential
from app.models.review import Review
from app.models.tour import Tour
from app.models.user import User
from app.schemas.review import ReviewCreate, ReviewUpdate
from app.services.payload_service import review_out

router = APIRouter(tags=["reviews"])


def _with_tours(db: Session, reviews: list[Review]) -> list[dict]:
    ids = {r.tour_id for r in reviews}
    tours = {t.id: t for t in db.query(Tour).filter(Tour.id.in_(ids)).all()} if ids else {}
    return [review_out(r, tours.get(r.tour_id)) for r in reviews]


def owned_review(db: Session, review_id: str, credential: Credential) -> Review:
    r = db.get(Review, review_id)
    if not r:
        raise NotFoundError("Review not found")
    enforce(authorize(credential, owner=user_owner(r.user_id)))
    return r


@router.get("/reviews")
def list_reviews(tourId: str | None = None, status: str = "approved", db: Session = Depends(get_db)):
    q = db.query(Review).filter(Review.status == status)
    if tourId:
        q = q.filter(Review.tour_id == tourId)
    return {"success": True, "data": _with_tours(db, q.order_by(Review.created_at.desc()).all())}


@router.post("/reviews", status_code=201)
def create_review(body: ReviewCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    tour_id = body.tour or body.tourId
    if not tour_id:
        raise ValidationError("tour is required")
    if not db.get(Tour, tour_id):
        raise NotFoundError("Tour not found")
    r = Review(
        id=str(uuid.uuid4()),
        tour_id=tour_id,
        user_id=me.id,
        user_name=me.name,
        rating=body.rating,
        comment=body.comment.strip(),
        status="pending",
    )
    db.add(r)
    db.commit()
    return {"success": True, "data": review_out(r)}


@router.get("/reviews/mine")
def my_reviews(db: Session = Depends(get_db), credential: Credential = Depends(get_credential)):
    rows = db.query(Review).filter(Review.user_id == credential.user_id).order_by(Review.created_at.desc()).all()
    return {"success": True, "data": _with_tours(db, rows)}


@router.put("/reviews/{review_id}")
def update_review(review_id: str, body: ReviewUpdate, db: Session = Depends(get_db),
                  credential: Credential = Depends(get_credential)):
    r = owned_review(db, review_id, credential)
    if body.rating is not None:
        r.rating = body.rating
    if body.comment is not None:
        if not body.comment.strip():
            raise ValidationError("Comment cannot be empty")
        r.comment = body.comment.strip()
    db.commit()
    return {"success": True, "data": review_out(r)}


@router.delete("/reviews/{review_id}")
def delete_review(review_id: str, db: Session = Depends(get_db), credential: Credential = Depends(get_credential)):
    r = owned_review(db, review_id, credential)
    db.delete(r)
    db.commit()
    return {"success": True, "message": "Review deleted"}
