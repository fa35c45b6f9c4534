"""
Audit trail endpoint for API v1 (administrators only).
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import require_roles
from booking_marketplace_api.app.schemas.audit import AuditLogRead
from booking_marketplace_api.app.services.audit_service import MAX_PAGE_SIZE, AuditService

router = APIRouter()


@router.get("/logs", response_model=List[AuditLogRead])
async def list_audit_logs(
    user_id: Optional[int] = Query(None, description="Acting user"),
    object_type: Optional[str] = Query(None, description="booking, payment, review, candidatura, user, ..."),
    action: Optional[str] = Query(None, description="create, update, cancel, moderate, delete, ..."),
    since: Optional[datetime] = Query(None, description="Only records at or after this instant"),
    until: Optional[datetime] = Query(None, description="Only records at or before this instant"),
    limit: int = Query(100, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> List[AuditLogRead]:
    """Audit records, newest first."""
    return await AuditService.list_logs(user_id, object_type, action, since, until, limit, offset)
