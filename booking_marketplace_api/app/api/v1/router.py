"""
Top-level router for version 1 of the API.

Aggregates the per-entity routers under a unified prefix.  When a new
entity is introduced, include its router here.
"""

from fastapi import APIRouter

from .endpoints import (
    audit,
    bookings,
    candidaturas,
    messages,
    models,
    notifications,
    payments,
    reviews,
    services,
    settings,
    users,
)

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(models.router, prefix="/models", tags=["models"])
router.include_router(services.router, prefix="/services", tags=["services"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])
router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
router.include_router(messages.router, prefix="/messages", tags=["messages"])
router.include_router(candidaturas.router, prefix="/candidaturas", tags=["candidaturas"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
