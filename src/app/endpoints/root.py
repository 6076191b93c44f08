"""Handler for the / endpoint."""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from log import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["root"])

index_page = """
<html>
    <head>
        <title>AI gateway service</title>
    </head>
    <body style='font-family: sans-serif;text-align:center;'>
        <h1>AI gateway service</h1>
        <div><a href="docs">Swagger UI</a></div>
        <div><a href="redoc">ReDoc</a></div>
    </body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
async def root_endpoint_handler(request: Request) -> HTMLResponse:
    """Handle request to the / endpoint."""
    # Nothing interesting in the request
    _ = request

    logger.info("Response to / endpoint")
    return HTMLResponse(index_page)
