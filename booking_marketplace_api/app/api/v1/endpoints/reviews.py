"""
Review endpoints for API v1.

Model reviews are read under ``/models/{model_id}/reviews``; this
router covers writing, moderating and the featured list.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import get_current_user, require_roles
from booking_marketplace_api.app.schemas.review import (
    CanReviewRead,
    ReviewCreate,
    ReviewModerate,
    ReviewRead,
    ReviewResponse,
    ReviewUpdate,
)
from booking_marketplace_api.app.services.review_service import ReviewService

router = APIRouter()


@router.post("/", response_model=ReviewRead, status_code=status.HTTP_201_CREATED, summary="Create a review")
async def create_review(data: ReviewCreate, current_user: dict = Depends(get_current_user)) -> ReviewRead:
    """Review a completed booking.

    The review stays hidden until an administrator approves it.
    """
    return await ReviewService.create_review(current_user["user_id"], data)


@router.get("/featured", response_model=List[ReviewRead], summary="Featured reviews")
async def list_featured_reviews() -> List[ReviewRead]:
    return await ReviewService.get_featured_reviews()


@router.get("/me", response_model=List[ReviewRead])
async def list_my_reviews(current_user: dict = Depends(get_current_user)) -> List[ReviewRead]:
    return await ReviewService.get_user_reviews(current_user["user_id"])


@router.get("/pending", response_model=List[ReviewRead], summary="Reviews awaiting moderation")
async def list_pending_reviews(current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> List[ReviewRead]:
    return await ReviewService.list_pending_reviews()


@router.get("/can-review/{booking_id}", response_model=CanReviewRead)
async def can_review(booking_id: int, current_user: dict = Depends(get_current_user)) -> CanReviewRead:
    allowed = await ReviewService.can_user_review(current_user["user_id"], booking_id)
    return CanReviewRead(booking_id=booking_id, can_review=allowed)


@router.put("/{review_id}", response_model=ReviewRead)
async def update_review(
    review_id: int, updates: ReviewUpdate, current_user: dict = Depends(get_current_user)
) -> ReviewRead:
    changes = updates.model_dump(exclude_unset=True, exclude_none=True)
    return await ReviewService.update_review(review_id, current_user["user_id"], changes)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a review")
async def delete_review(review_id: int, current_user: dict = Depends(get_current_user)) -> None:
    """The author or an administrator may delete a review."""
    await ReviewService.delete_review(review_id, current_user)


@router.post("/{review_id}/response", response_model=ReviewRead)
async def respond_to_review(
    review_id: int, body: ReviewResponse, current_user: dict = Depends(get_current_user)
) -> ReviewRead:
    return await ReviewService.add_model_response(review_id, current_user["user_id"], body.response)


@router.put("/{review_id}/moderate", response_model=ReviewRead, summary="Moderate a review")
async def moderate_review(
    review_id: int, data: ReviewModerate, current_user: dict = Depends(require_roles(ROLE_ADMIN))
) -> ReviewRead:
    return await ReviewService.moderate_review(
        review_id, data.admin_approved, current_user.get("user_id"), data.is_featured
    )
