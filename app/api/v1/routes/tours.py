from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.errors import NotFoundError
from app.models.tour import Tour
from app.services.payload_service import tour_out

router = APIRouter(tags=["tours"])


@router.get("/tours")
def list_tours(category: str | None = None, status: str = "published", db: Session = Depends(get_db)):
    q = db.query(Tour)
    if status:
        q = q.filter(Tour.status == status)
    if category and category != "All":
        q = q.filter(Tour.category == category)
    tours = q.order_by(Tour.created_at.desc()).all()
    return {"success": True, "data": [tour_out(t) for t in tours]}


@router.get("/tours/{tour_id}")
def get_tour(tour_id: str, db: Session = Depends(get_db)):
    t = db.get(Tour, tour_id)
    if not t:
        raise NotFoundError("Tour not found")
    return {"success": True, "data": tour_out(t)}
