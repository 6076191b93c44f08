"""Unit tests for the /chat/completions REST API endpoint."""

import asyncio

import aiohttp
import pytest
from fastapi import HTTPException, Request, status
from pytest_mock import MockerFixture

from app.endpoints.inference import (
    UpstreamError,
    chat_completions_endpoint_handler,
    retrieve_response,
)
from authentication.interface import AuthTuple
from configuration import AppConfig
from credentials.errors import AllCredentialsDeadError, NoCredentialsConfiguredError
from credentials.token_cache import InferenceToken
from models.config import TokenExchangeConfiguration
from models.requests import ChatCompletionRequest
from quota.model_tier import ModelTier
from quota.quota_ledger import QuotaStatus
from tests.unit.utils.auth_helpers import mock_authorization_resolvers
from tests.unit.utils.gateway_helpers import mock_gateway
from tests.unit.utils.http_helpers import mock_aiohttp_session

AUTH: AuthTuple = ("user-1", "user", False, "token")

TOKEN = InferenceToken(
    value="tid=abc;exp=1735689600;proxy-ep=proxy.enterprise.githubcopilot.com",
    expires_at=1735689600,
    source_credential_id="c1",
)

COMPLETION = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "choices": [{"index": 0, "message": {"role": "assistant", "content": "Hi"}}],
}


@pytest.fixture(name="gateway")
def gateway_fixture(mocker: MockerFixture, minimal_config):
    """Mocked gateway that allows the request and hands out a token."""
    AppConfig().init_from_dict(minimal_config)
    mock_authorization_resolvers(mocker)
    gateway = mock_gateway(mocker)
    gateway.quota_ledger.check_quota.return_value = QuotaStatus(
        allowed=True, remaining=14, limit=15, tier=ModelTier.STANDARD
    )
    gateway.rotation_manager.acquire_token.return_value = TOKEN
    return gateway


@pytest.fixture(name="mock_metrics")
def mock_metrics_fixture(mocker: MockerFixture):
    """Replace metrics used by the endpoint."""
    return mocker.patch("app.endpoints.inference.metrics")


def make_completion_request(model: str = "gpt-4.1") -> ChatCompletionRequest:
    """Create chat completion request."""
    return ChatCompletionRequest(
        model=model, messages=[{"role": "user", "content": "Hello"}], temperature=0.2
    )


@pytest.mark.asyncio
async def test_retrieve_response(mocker: MockerFixture) -> None:
    """Request is sent to the endpoint announced by the token."""
    _, session = mock_aiohttp_session(mocker, json_data=COMPLETION)

    result = await retrieve_response(
        TOKEN, {"model": "gpt-4.1", "messages": []}, TokenExchangeConfiguration()
    )

    assert result == COMPLETION
    args, kwargs = session.post.call_args
    assert args[0] == "https://api.enterprise.githubcopilot.com/chat/completions"
    assert kwargs["headers"]["Authorization"] == f"Bearer {TOKEN.value}"
    assert kwargs["headers"]["Copilot-Integration-Id"] == "vscode-chat"
    assert kwargs["json"] == {"model": "gpt-4.1", "messages": []}


@pytest.mark.asyncio
async def test_retrieve_response_default_endpoint(mocker: MockerFixture) -> None:
    """Default endpoint is used for tokens without proxy endpoint."""
    _, session = mock_aiohttp_session(mocker, json_data=COMPLETION)
    token = InferenceToken(value="tid=abc", expires_at=0, source_credential_id="c1")

    await retrieve_response(token, {}, TokenExchangeConfiguration())

    args, _ = session.post.call_args
    assert args[0] == "https://api.individual.githubcopilot.com/chat/completions"


@pytest.mark.asyncio
async def test_retrieve_response_http_error(mocker: MockerFixture) -> None:
    """Non-2xx status is reported with the status code."""
    mock_aiohttp_session(mocker, status=401)

    with pytest.raises(UpstreamError) as exc_info:
        await retrieve_response(TOKEN, {}, TokenExchangeConfiguration())
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "request_error",
    [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()],
)
async def test_retrieve_response_transport_error(
    mocker: MockerFixture, request_error: Exception
) -> None:
    """Transport failures are reported without status code."""
    mock_aiohttp_session(mocker, request_error=request_error)

    with pytest.raises(UpstreamError) as exc_info:
        await retrieve_response(TOKEN, {}, TokenExchangeConfiguration())
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_retrieve_response_invalid_json(mocker: MockerFixture) -> None:
    """Body that is not JSON is reported as upstream error."""
    mock_aiohttp_session(mocker, json_error=ValueError("not json"))

    with pytest.raises(UpstreamError):
        await retrieve_response(TOKEN, {}, TokenExchangeConfiguration())


@pytest.mark.asyncio
async def test_chat_completions(
    mocker: MockerFixture, gateway, mock_metrics
) -> None:
    """Completion is returned and usage is recorded."""
    mock_retrieve = mocker.patch(
        "app.endpoints.inference.retrieve_response", return_value=COMPLETION
    )

    response = await chat_completions_endpoint_handler(
        request=Request(scope={"type": "http"}),
        completion_request=make_completion_request(),
        auth=AUTH,
    )

    assert response.status_code == 200
    assert b"chatcmpl-1" in response.body
    payload = mock_retrieve.call_args.args[1]
    assert payload["temperature"] == 0.2
    assert "stream" not in payload
    gateway.quota_ledger.check_quota.assert_awaited_once_with(
        "user-1", "gpt-4.1", False
    )
    gateway.quota_ledger.record_usage.assert_called_once_with("user-1", "gpt-4.1")
    mock_metrics.llm_calls_total.labels.assert_called_once_with("gpt-4.1")


@pytest.mark.asyncio
async def test_chat_completions_quota_exceeded(mocker: MockerFixture, gateway) -> None:
    """Exhausted quota returns 429 and nothing is forwarded."""
    gateway.quota_ledger.check_quota.return_value = QuotaStatus(
        allowed=False, remaining=0, limit=5, tier=ModelTier.HEAVY
    )
    mock_retrieve = mocker.patch("app.endpoints.inference.retrieve_response")

    with pytest.raises(HTTPException) as exc_info:
        await chat_completions_endpoint_handler(
            request=Request(scope={"type": "http"}),
            completion_request=make_completion_request("claude-opus-4"),
            auth=AUTH,
        )

    assert exc_info.value.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert exc_info.value.detail["response"] == "The quota has been exceeded"
    assert "claude-opus-4" in exc_info.value.detail["cause"]
    gateway.rotation_manager.acquire_token.assert_not_awaited()
    mock_retrieve.assert_not_called()
    gateway.quota_ledger.record_usage.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [AllCredentialsDeadError(3), NoCredentialsConfiguredError("empty pool")],
)
async def test_chat_completions_no_token(
    mocker: MockerFixture, gateway, error: Exception
) -> None:
    """Failure to obtain token returns 503."""
    gateway.rotation_manager.acquire_token.side_effect = error
    mock_retrieve = mocker.patch("app.endpoints.inference.retrieve_response")

    with pytest.raises(HTTPException) as exc_info:
        await chat_completions_endpoint_handler(
            request=Request(scope={"type": "http"}),
            completion_request=make_completion_request(),
            auth=AUTH,
        )

    assert exc_info.value.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    mock_retrieve.assert_not_called()
    gateway.quota_ledger.record_usage.assert_not_called()


@pytest.mark.asyncio
async def test_chat_completions_upstream_failure(
    mocker: MockerFixture, gateway, mock_metrics
) -> None:
    """Upstream failure returns 502 and usage is not recorded."""
    mocker.patch(
        "app.endpoints.inference.retrieve_response",
        side_effect=UpstreamError("Inference API returned HTTP 500", 500),
    )

    with pytest.raises(HTTPException) as exc_info:
        await chat_completions_endpoint_handler(
            request=Request(scope={"type": "http"}),
            completion_request=make_completion_request(),
            auth=AUTH,
        )

    assert exc_info.value.status_code == status.HTTP_502_BAD_GATEWAY
    gateway.token_cache.invalidate.assert_not_called()
    gateway.quota_ledger.record_usage.assert_not_called()
    mock_metrics.llm_calls_failures_total.labels.assert_called_once_with("gpt-4.1")


@pytest.mark.asyncio
@pytest.mark.usefixtures("mock_metrics")
async def test_chat_completions_revoked_token(mocker: MockerFixture, gateway) -> None:
    """Token rejected by inference API is dropped from cache."""
    mocker.patch(
        "app.endpoints.inference.retrieve_response",
        side_effect=UpstreamError("Inference API returned HTTP 401", 401),
    )

    with pytest.raises(HTTPException):
        await chat_completions_endpoint_handler(
            request=Request(scope={"type": "http"}),
            completion_request=make_completion_request(),
            auth=AUTH,
        )

    gateway.token_cache.invalidate.assert_called_once_with("c1")
