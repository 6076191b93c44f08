"""Handlers for REST API calls reporting quota of the caller."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from authorization.middleware import authorize
from configuration import configuration
from log import get_logger
from models.config import Action
from models.responses import (
    ModelUsageResponse,
    QuotaStatusResponse,
    UnauthorizedResponse,
    UsageSummaryResponse,
)
from utils.endpoints import check_configuration_loaded, get_gateway, is_admin_request

logger = get_logger("app.endpoints.handlers")
router = APIRouter(tags=["quota"])


quota_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "model_id": "claude-opus-4",
        "allowed": True,
        "remaining": 3,
        "limit": 5,
        "tier": "heavy",
    },
    401: {
        "description": "Unauthorized: Invalid or missing Bearer token",
        "model": UnauthorizedResponse,
    },
}

usage_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "user_id": "user-1",
        "usage_date": "2025-01-01",
        "models": [
            {
                "model_id": "claude-opus-4",
                "used": 2,
                "limit": 5,
                "remaining": 3,
                "tier": "heavy",
            }
        ],
    },
    401: {
        "description": "Unauthorized: Invalid or missing Bearer token",
        "model": UnauthorizedResponse,
    },
}


@router.get("/quota/{model_id:path}", responses=quota_responses)
@authorize(Action.GET_QUOTA)
async def quota_endpoint_handler(
    model_id: str,
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> QuotaStatusResponse:
    """
    Report whether the caller can send one more request to the model today.

    Storage failures never fail this call, the quota check allows the
    request instead.
    """
    check_configuration_loaded(configuration)

    user_id = auth[0]
    quota_status = await get_gateway().quota_ledger.check_quota(
        user_id, model_id, is_admin_request(request)
    )
    return QuotaStatusResponse(
        model_id=model_id,
        allowed=quota_status.allowed,
        remaining=quota_status.remaining,
        limit=quota_status.limit,
        tier=quota_status.tier.value,
    )


@router.get("/quota", responses=usage_responses)
@authorize(Action.GET_QUOTA)
async def usage_summary_endpoint_handler(
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> UsageSummaryResponse:
    """Return today's usage of every model the caller has used."""
    check_configuration_loaded(configuration)

    user_id = auth[0]
    ledger = get_gateway().quota_ledger
    summary = await ledger.usage_summary(user_id, is_admin_request(request))
    logger.debug("User %s used %d model(s) today", user_id, len(summary))
    return UsageSummaryResponse(
        user_id=user_id,
        usage_date=ledger.today().isoformat(),
        models=[
            ModelUsageResponse(
                model_id=usage.model_id,
                used=usage.used,
                limit=usage.limit,
                remaining=usage.remaining,
                tier=usage.tier.value,
            )
            for usage in summary
        ],
    )
