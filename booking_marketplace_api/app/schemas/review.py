"""
Pydantic schemas for model reviews.

Clients review a model after a completed booking.  Reviews are hidden
from the public listing until an administrator approves them; the
reviewed model may publish one response.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_COMMENT_LENGTH = 1000


def _clean_comment(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if len(v) > MAX_COMMENT_LENGTH:
        raise ValueError(f"Comment must be {MAX_COMMENT_LENGTH} characters or fewer")
    return v or None


class ReviewCreate(BaseModel):
    """Schema for creating a new review."""

    booking_id: int = Field(..., description="Completed booking being reviewed")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, description="Optional textual comment")
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    is_anonymous: bool = False

    @field_validator("comment")
    @classmethod
    def sanitize_comment(cls, v: Optional[str]) -> Optional[str]:
        """Trim whitespace from the comment and enforce a maximum length."""
        return _clean_comment(v)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = None
    pros: Optional[List[str]] = None
    cons: Optional[List[str]] = None

    @field_validator("comment")
    @classmethod
    def sanitize_comment(cls, v: Optional[str]) -> Optional[str]:
        return _clean_comment(v)


class ReviewModerate(BaseModel):
    """Schema for moderating a review."""

    admin_approved: bool = Field(..., description="Whether to publish the review")
    is_featured: Optional[bool] = None


class ReviewResponse(BaseModel):
    response: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)


class ReviewRead(BaseModel):
    """Schema for reading a review from the API."""

    id: int
    client_id: Optional[int]
    model_id: int
    booking_id: int
    rating: int
    comment: Optional[str] = None
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    is_anonymous: bool = False
    is_verified: bool = False
    is_featured: bool = False
    admin_approved: bool = False
    response_from_model: Optional[str] = None
    response_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    client_name: Optional[str] = None
    model_stage_name: Optional[str] = None
    model_photo_url: Optional[str] = None

    model_config = {
        "from_attributes": True,
        "protected_namespaces": (),
    }


class CanReviewRead(BaseModel):
    booking_id: int
    can_review: bool
