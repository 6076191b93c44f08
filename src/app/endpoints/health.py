"""Handlers for health REST API endpoints.

These endpoints are used to check if service is live and prepared to accept
requests.
"""

import asyncio
from typing import Any

from fastapi import APIRouter, status, Response
from sqlalchemy.exc import SQLAlchemyError

from configuration import configuration
from gateway import GatewayHolder
from log import get_logger
from models.responses import (
    LivenessResponse,
    ReadinessResponse,
)

logger = get_logger("app.endpoints.handlers")
router = APIRouter(tags=["health"])


get_readiness_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Service is ready",
        "model": ReadinessResponse,
    },
    503: {
        "description": "Service is not ready",
        "model": ReadinessResponse,
    },
}


@router.get("/readiness", responses=get_readiness_responses)
async def readiness_get_method(
    response: Response,
) -> ReadinessResponse:
    """
    Return the readiness status of the service.

    The service is ready when the configuration is loaded, the credential
    database is reachable and at least one credential (or the fallback
    credential) can be used to obtain inference tokens.
    """
    logger.info("Response to /readiness endpoint")

    if not configuration.is_loaded():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(ready=False, reason="Configuration not loaded")

    try:
        gateway = GatewayHolder().get()
    except RuntimeError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(ready=False, reason="Service is starting")

    try:
        usable = await asyncio.to_thread(gateway.credential_store.list_usable)
    except SQLAlchemyError as e:
        logger.error("Credential database is not available: %s", e)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(ready=False, reason="Credential database unavailable")

    if not usable and configuration.token_exchange_configuration.fallback_secret is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(ready=False, reason="No usable credentials")

    return ReadinessResponse(
        ready=True, reason="Service is ready", alive_credentials=len(usable)
    )


get_liveness_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Service is alive",
        "model": LivenessResponse,
    },
    # HTTP_503_SERVICE_UNAVAILABLE will never be returned when unreachable
}


@router.get("/liveness", responses=get_liveness_responses)
async def liveness_get_method() -> LivenessResponse:
    """
    Return the liveness status of the service.

    Returns:
        LivenessResponse: Indicates that the service is alive.
    """
    logger.info("Response to /liveness endpoint")

    return LivenessResponse(alive=True)
