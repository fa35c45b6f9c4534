"""
Service catalogue endpoints for API v1.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import require_roles
from booking_marketplace_api.app.schemas.model import ServiceCreate, ServiceRead
from booking_marketplace_api.app.services.catalog_service import CatalogService

router = APIRouter()


@router.get("/", response_model=List[ServiceRead])
async def list_services(active_only: bool = True) -> List[ServiceRead]:
    return await CatalogService.list_services(active_only)


@router.get("/{service_id}", response_model=ServiceRead)
async def get_service(service_id: int) -> ServiceRead:
    return await CatalogService.get_service(service_id)


@router.post("/", response_model=ServiceRead, status_code=status.HTTP_201_CREATED)
async def create_service(data: ServiceCreate, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> ServiceRead:
    """Add a service to the catalogue (administrators only)."""
    return await CatalogService.create_service(data, admin_id=current_user.get("user_id"))
