"""Handler for chat completions forwarded to the upstream inference API."""

import asyncio
from typing import Annotated, Any

import aiohttp
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

import constants
import metrics
from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from authorization.middleware import authorize
from configuration import configuration
from credentials.errors import AllCredentialsDeadError, NoCredentialsConfiguredError
from credentials.token_cache import InferenceToken
from credentials.token_exchanger import inference_base_url
from log import get_logger, short_id
from models.config import Action, TokenExchangeConfiguration
from models.requests import ChatCompletionRequest
from models.responses import (
    ForbiddenResponse,
    QuotaExceededResponse,
    ServiceUnavailableResponse,
    UnauthorizedResponse,
    UpstreamErrorResponse,
)
from quota.quota_exceed_error import QuotaExceedError
from utils.endpoints import check_configuration_loaded, get_gateway, is_admin_request

logger = get_logger("app.endpoints.handlers")
router = APIRouter(tags=["inference"])


chat_completions_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Chat completion returned by the upstream",
    },
    401: {
        "description": "Unauthorized: Invalid or missing Bearer token",
        "model": UnauthorizedResponse,
    },
    403: {
        "description": "User is not authorized",
        "model": ForbiddenResponse,
    },
    429: {
        "description": "Daily quota of the model has been exceeded",
        "model": QuotaExceededResponse,
    },
    502: {
        "description": "Upstream inference request failed",
        "model": UpstreamErrorResponse,
    },
    503: {
        "description": "No upstream credential available",
        "model": ServiceUnavailableResponse,
    },
}


class UpstreamError(Exception):
    """Upstream inference API did not return a completion."""

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize the exception with upstream HTTP status, if any."""
        super().__init__(message)
        self.status_code = status_code


async def retrieve_response(
    token: InferenceToken,
    payload: dict[str, Any],
    exchange_config: TokenExchangeConfiguration,
) -> Any:
    """
    Send chat completion request with the inference token.

    Returns:
        The JSON body returned by the upstream.

    Raises:
        UpstreamError: on transport failure, non-2xx status or non-JSON body.
    """
    url = f"{inference_base_url(token.value)}/chat/completions"
    headers = exchange_config.headers
    headers["Authorization"] = f"Bearer {token.value}"
    headers["Copilot-Integration-Id"] = exchange_config.integration_id
    timeout = aiohttp.ClientTimeout(total=constants.DEFAULT_INFERENCE_TIMEOUT)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=payload, headers=headers) as resp:
                if not 200 <= resp.status < 300:
                    raise UpstreamError(
                        f"Inference API returned HTTP {resp.status}", resp.status
                    )
                return await resp.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise UpstreamError(f"Inference request failed: {type(e).__name__}") from e


@router.post("/chat/completions", responses=chat_completions_responses)
@authorize(Action.QUERY)
async def chat_completions_endpoint_handler(
    request: Request,
    completion_request: ChatCompletionRequest,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> JSONResponse:
    """
    Handle request to the /chat/completions endpoint.

    Checks the caller's daily quota of the requested model, takes an
    inference token from the credential pool and forwards the request
    upstream. Usage is recorded in background once the upstream answered.
    """
    check_configuration_loaded(configuration)

    user_id = auth[0]
    model_id = completion_request.model
    gateway = get_gateway()

    quota_status = await gateway.quota_ledger.check_quota(
        user_id, model_id, is_admin_request(request)
    )
    if not quota_status.allowed:
        error = QuotaExceedError(user_id, model_id, quota_status.limit)
        logger.warning("%s", error)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=QuotaExceededResponse(
                user_id=error.user_id, model_id=error.model_id, limit=error.limit
            ).dump_detail(),
        ) from error

    try:
        token = await gateway.rotation_manager.acquire_token()
    except (AllCredentialsDeadError, NoCredentialsConfiguredError) as e:
        logger.error("Unable to obtain inference token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ServiceUnavailableResponse(cause=str(e)).dump_detail(),
        ) from e

    try:
        completion = await retrieve_response(
            token,
            completion_request.model_dump(exclude_none=True),
            configuration.token_exchange_configuration,
        )
    except UpstreamError as e:
        metrics.llm_calls_failures_total.labels(model_id).inc()
        if e.status_code == status.HTTP_401_UNAUTHORIZED:
            # the token was revoked before its expiry, exchange again next time
            gateway.token_cache.invalidate(token.source_credential_id)
        logger.error(
            "Chat completion via credential %s failed: %s",
            short_id(token.source_credential_id),
            e,
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=UpstreamErrorResponse(
                upstream="Inference", cause=str(e)
            ).dump_detail(),
        ) from e

    metrics.llm_calls_total.labels(model_id).inc()
    gateway.quota_ledger.record_usage(user_id, model_id)
    return JSONResponse(content=completion)
