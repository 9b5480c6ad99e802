"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health             -- simple health check
GET /api/v1/admin/transitions        -- the order transition table, as data
"""

from fastapi import APIRouter, Request

from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import HealthResponse
from src.domain.order_status import ORDER_TRANSITIONS

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


@router.get(
    "/transitions",
    summary="Legal status transitions and the roles allowed to request them",
)
@limiter.limit(RATE_LIMIT)
async def transition_table(request: Request):
    return [
        {
            "from": status.value,
            "fulfillment": fulfillment.value,
            "to": target.value,
            "roles": sorted(role.value for role in roles),
        }
        for (status, fulfillment), targets in ORDER_TRANSITIONS.items()
        for target, roles in targets.items()
    ]
