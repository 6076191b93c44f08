"""Utility functions for endpoint handlers."""

from fastapi import HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError

from configuration import AppConfig
from gateway import Gateway, GatewayHolder
from log import get_logger
from models.responses import DatabaseErrorResponse

logger = get_logger(__name__)


def check_configuration_loaded(config: AppConfig) -> None:
    """
    Ensure the application configuration is loaded.

    Raises:
        HTTPException: HTTP 500 Internal Server Error when the configuration
        has not been loaded yet.
    """
    if not config.is_loaded():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "response": "Configuration is not loaded",
                "cause": "The service has not finished its startup",
            },
        )


def get_gateway() -> Gateway:
    """
    Return gateway components.

    Raises:
        HTTPException: HTTP 503 when the components are not initialised.
    """
    try:
        return GatewayHolder().get()
    except RuntimeError as e:
        logger.error("Gateway requested before startup finished")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"response": "Service is starting", "cause": str(e)},
        ) from e


def database_error(operation: str, error: SQLAlchemyError) -> HTTPException:
    """Log database failure and construct HTTP 500 exception for it."""
    logger.error("Database operation '%s' failed: %s", operation, error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=DatabaseErrorResponse(
            cause=f"Unable to {operation}"
        ).dump_detail(),
    )


def is_admin_request(request: Request) -> bool:
    """Check whether the authorization middleware granted admin role."""
    return bool(getattr(request.state, "is_admin", False))
