"""
Model directory endpoints for API v1.

Reading the directory is public.  Administrators create profiles; the
model user owning a profile may edit it and manage its services.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.errors import PermissionDeniedError
from booking_marketplace_api.app.core.security import get_current_user, is_admin, require_roles
from booking_marketplace_api.app.schemas.booking import BookingRead
from booking_marketplace_api.app.schemas.model import (
    ModelCategory,
    ModelCreate,
    ModelRead,
    ModelServiceCreate,
    ModelServiceRead,
    ModelStats,
    ModelUpdate,
)
from booking_marketplace_api.app.schemas.review import ReviewRead
from booking_marketplace_api.app.services.booking_service import BookingService
from booking_marketplace_api.app.services.catalog_service import CatalogService
from booking_marketplace_api.app.services.model_service import ModelService
from booking_marketplace_api.app.services.review_service import ReviewService

router = APIRouter()


@router.get("/", response_model=List[ModelRead])
async def list_models(
    q: Optional[str] = Query(None, description="Matches stage name, location or specialty"),
    category: Optional[ModelCategory] = None,
) -> List[ModelRead]:
    """List active models, featured first and then by rating."""
    return await ModelService.get_all_models(q, category)


@router.get("/featured", response_model=List[ModelRead])
async def list_featured_models() -> List[ModelRead]:
    return await ModelService.get_featured_models()


@router.get("/search", response_model=List[ModelRead])
async def search_models(q: str = Query(..., min_length=1)) -> List[ModelRead]:
    return await ModelService.search_models(q)


@router.get("/category/{category}", response_model=List[ModelRead])
async def list_models_by_category(category: str) -> List[ModelRead]:
    return await ModelService.get_models_by_category(category)


@router.post("/", response_model=ModelRead, status_code=status.HTTP_201_CREATED)
async def create_model(data: ModelCreate, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> ModelRead:
    return await ModelService.create_model(data, admin_id=current_user.get("user_id"))


@router.get("/{model_id}", response_model=ModelRead)
async def get_model(model_id: int) -> ModelRead:
    return await ModelService.get_model_by_id(model_id)


@router.put("/{model_id}", response_model=ModelRead)
async def update_model(
    model_id: int, updates: ModelUpdate, current_user: dict = Depends(get_current_user)
) -> ModelRead:
    """Edit a profile.

    Visibility, featuring, verification and the linked account are
    reserved to administrators.
    """
    changes = updates.model_dump(exclude_unset=True, exclude_none=True)
    return await ModelService.update_model(model_id, changes, current_user)


@router.get("/{model_id}/stats", response_model=ModelStats)
async def get_model_stats(model_id: int) -> ModelStats:
    return await ModelService.get_model_stats(model_id)


@router.get("/{model_id}/services", response_model=List[ModelServiceRead])
async def list_model_services(model_id: int) -> List[ModelServiceRead]:
    await ModelService.get_model_by_id(model_id)
    return await CatalogService.get_model_services(model_id)


@router.post("/{model_id}/services", response_model=ModelServiceRead, status_code=status.HTTP_201_CREATED)
async def add_model_service(
    model_id: int, data: ModelServiceCreate, current_user: dict = Depends(get_current_user)
) -> ModelServiceRead:
    return await CatalogService.add_model_service(model_id, data, current_user)


@router.get("/{model_id}/reviews", response_model=List[ReviewRead])
async def list_model_reviews(model_id: int) -> List[ReviewRead]:
    """Approved reviews of the model, newest first."""
    return await ReviewService.get_model_reviews(model_id)


@router.get("/{model_id}/bookings", response_model=List[BookingRead])
async def list_model_bookings(model_id: int, current_user: dict = Depends(get_current_user)) -> List[BookingRead]:
    """Bookings of a model; visible to the owning account and administrators."""
    model = await ModelService.get_model_by_id(model_id, include_inactive=True)
    if not is_admin(current_user) and model.user_id != current_user.get("user_id"):
        raise PermissionDeniedError("Only the model or an administrator can list these bookings")
    return await BookingService.get_model_bookings(model_id)
