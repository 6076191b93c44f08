"""Handler for REST API call to provide metrics."""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    generate_latest,
)
from sqlalchemy.exc import SQLAlchemyError

from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from authorization.middleware import authorize
from gateway import GatewayHolder
from log import get_logger
from metrics.utils import update_credential_metrics
from models.config import Action

logger = get_logger("app.endpoints.handlers")
router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=PlainTextResponse)
@authorize(Action.GET_METRICS)
async def metrics_endpoint_handler(
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
    request: Request,
) -> PlainTextResponse:
    """
    Handle request to the /metrics endpoint.

    Refreshes the credential gauge and responds with the current metrics
    snapshot in Prometheus format.
    """
    # Used only for authorization
    _ = auth

    # Nothing interesting in the request
    _ = request

    try:
        store = GatewayHolder().get().credential_store
        await asyncio.to_thread(update_credential_metrics, store)
    except RuntimeError as e:
        logger.warning("Credential metrics not available yet: %s", e)
    except SQLAlchemyError as e:
        # stale gauge values are still worth reporting
        logger.error("Unable to refresh credential metrics: %s", e)
    return PlainTextResponse(generate_latest(), media_type=CONTENT_TYPE_LATEST)
