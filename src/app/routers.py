"""REST API routers."""

from fastapi import FastAPI

from app.endpoints import (
    credentials,
    health,
    inference,
    info,
    metrics,
    models,
    quota,
    root,
)


def include_routers(app: FastAPI) -> None:
    """Include FastAPI routers for different endpoints.

    Args:
        app: The `FastAPI` app instance.
    """
    app.include_router(root.router)

    app.include_router(info.router, prefix="/v1")
    app.include_router(models.router, prefix="/v1")
    app.include_router(quota.router, prefix="/v1")
    app.include_router(inference.router, prefix="/v1")
    app.include_router(credentials.router, prefix="/v1")

    # health checks and metrics are not versioned
    app.include_router(health.router)
    app.include_router(metrics.router)
