"""Handler for REST API call returning service name and version."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from authentication.interface import AuthTuple
from authentication import get_auth_dependency
from authorization.middleware import authorize
from configuration import configuration
from log import get_logger
from models.config import Action
from models.responses import InfoResponse
from utils.endpoints import check_configuration_loaded
from version import __version__

logger = get_logger("app.endpoints.handlers")
router = APIRouter(tags=["info"])


get_info_responses: dict[int | str, dict[str, Any]] = {
    200: {"name": "AI gateway", "service_version": __version__},
    500: {
        "detail": {
            "response": "Configuration is not loaded",
            "cause": "The service has not finished its startup",
        }
    },
}


@router.get("/info", responses=get_info_responses)
@authorize(Action.INFO)
async def info_endpoint_handler(
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
    request: Request,
) -> InfoResponse:
    """Return name of the gateway deployment and version of the service."""
    # Used only for authorization
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    return InfoResponse(
        name=configuration.configuration.name, service_version=__version__
    )
