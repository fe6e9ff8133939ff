"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from engagement.api.v1 import health, notification_batches

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Notification batches
api_router.include_router(
    notification_batches.router,
    prefix="/notification-batches",
    tags=["notifications"],
)
