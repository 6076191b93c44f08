"""FastAPI application of the AI gateway."""

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.routing import Mount, Route, WebSocketRoute

import constants
import metrics
import version
from app import routers
from app.database import create_tables, get_session_factory, initialize_database
from configuration import configuration
from gateway import GatewayHolder
from log import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """
    Prepare gateway components before the first request is served.

    The Uvicorn process loads configuration from the path exported by the
    command line entry point. On shutdown the usage increments still in
    flight are awaited so that no request escapes its quota.
    """
    configuration.load_configuration(os.environ[constants.CONFIG_PATH_ENV_VARIABLE])

    initialize_database()
    create_tables()
    GatewayHolder().load(configuration.configuration, get_session_factory())
    logger.info("Gateway ready to serve requests")

    yield

    await GatewayHolder().get().quota_ledger.drain()
    logger.info("Gateway stopped")


service_name = configuration.configuration.name

app = FastAPI(
    title=f"{service_name} service - OpenAPI",
    summary=f"{service_name} service API specification.",
    description=(
        f"{service_name} rotates GitHub credentials to obtain inference "
        "tokens and enforces daily per-model request quotas."
    ),
    version=version.__version__,
    license_info={
        "name": "Apache 2.0",
        "url": "https://www.apache.org/licenses/LICENSE-2.0.html",
    },
    servers=[
        {"url": "http://localhost:8080/", "description": "Locally running service"}
    ],
    lifespan=lifespan,
)

cors = configuration.service_configuration.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.allow_origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)


@app.middleware("")
async def rest_api_metrics(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Measure duration and count calls of known endpoints."""
    path = request.url.path
    if path not in app_routes_paths:
        return await call_next(request)

    with metrics.response_duration_seconds.labels(path).time():
        response = await call_next(request)

    # scrapes of /metrics would dominate the counter
    if not path.endswith("/metrics"):
        metrics.rest_api_calls_total.labels(path, response.status_code).inc()
    return response


routers.include_routers(app)

app_routes_paths = [
    route.path
    for route in app.routes
    if isinstance(route, (Mount, Route, WebSocketRoute))
]
