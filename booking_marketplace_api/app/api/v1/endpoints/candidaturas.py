"""
Model application endpoints for API v1.

Submitting the application form is public; everything else is for
administrators.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import require_roles
from booking_marketplace_api.app.schemas.candidatura import (
    CandidaturaCreate,
    CandidaturaRead,
    CandidaturaStats,
    CandidaturaStatus,
    CandidaturaStatusUpdate,
)
from booking_marketplace_api.app.services.candidatura_service import CandidaturaService

router = APIRouter()


@router.post("/", response_model=CandidaturaRead, status_code=status.HTTP_201_CREATED)
async def submit_candidatura(data: CandidaturaCreate) -> CandidaturaRead:
    """Submit an application to join the directory."""
    return await CandidaturaService.submit_candidatura(data)


@router.get("/", response_model=List[CandidaturaRead])
async def list_candidaturas(
    status_param: Optional[CandidaturaStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None, description="Matches name, email or province"),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> List[CandidaturaRead]:
    """List applications, newest first, optionally by status or search text."""
    if q:
        results = await CandidaturaService.search_candidaturas(q)
        if status_param:
            results = [c for c in results if c.status == status_param]
        return results
    if status_param:
        return await CandidaturaService.get_candidaturas_by_status(status_param)
    return await CandidaturaService.get_all_candidaturas()


@router.get("/stats", response_model=CandidaturaStats)
async def candidatura_stats(current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> CandidaturaStats:
    return await CandidaturaService.get_candidatura_stats()


@router.get("/{candidatura_id}", response_model=CandidaturaRead)
async def get_candidatura(
    candidatura_id: int, current_user: dict = Depends(require_roles(ROLE_ADMIN))
) -> CandidaturaRead:
    return await CandidaturaService.get_candidatura_by_id(candidatura_id)


@router.patch("/{candidatura_id}/status", response_model=CandidaturaRead)
async def update_candidatura_status(
    candidatura_id: int,
    body: CandidaturaStatusUpdate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> CandidaturaRead:
    return await CandidaturaService.update_candidatura_status(candidatura_id, body, current_user.get("user_id"))


@router.delete("/{candidatura_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_candidatura(candidatura_id: int, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> None:
    await CandidaturaService.delete_candidatura(candidatura_id, current_user.get("user_id"))
