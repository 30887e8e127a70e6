from pydantic import BaseModel, Field
from typing import Optional


class ReviewCreate(BaseModel):
    tour: Optional[str] = None
    tourId: Optional[str] = None
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = None


class ReviewStatusUpdate(BaseModel):
    status: str
