"""Unit tests for the token exchanger."""

import asyncio

import aiohttp
import pytest

import constants
from credentials.errors import ExchangeError, ExchangeErrorKind
from credentials.token_exchanger import (
    TokenExchanger,
    inference_base_url,
    token_sku,
)
from models.config import TokenExchangeConfiguration
from tests.unit.utils.http_helpers import mock_aiohttp_session

SAMPLE_TOKEN = (
    "tid=abc;exp=1700000000;sku=copilot_for_individuals_subscriber;"
    "proxy-ep=proxy.individual.githubcopilot.com;8kp=1:signature"
)


@pytest.fixture(name="exchanger")
def exchanger_fixture() -> TokenExchanger:
    """Exchanger with fixed clock."""
    return TokenExchanger(TokenExchangeConfiguration(), clock=lambda: 1000.0)


@pytest.mark.asyncio
async def test_exchange_success(mocker, exchanger) -> None:
    """Test that token and expiry are taken from the response."""
    _, session = mock_aiohttp_session(
        mocker, json_data={"token": SAMPLE_TOKEN, "expires_at": 1700000000}
    )

    exchanged = await exchanger.exchange("gho_secret")

    assert exchanged.token == SAMPLE_TOKEN
    assert exchanged.expires_at == 1700000000

    # credential is sent as bearer together with editor headers
    _, kwargs = session.get.call_args
    assert session.get.call_args.args[0] == constants.DEFAULT_TOKEN_EXCHANGE_URL
    assert kwargs["headers"]["Authorization"] == "Bearer gho_secret"
    assert kwargs["headers"]["editor-version"] == constants.DEFAULT_EDITOR_VERSION


@pytest.mark.asyncio
async def test_exchange_does_not_leak_secret_into_config(mocker, exchanger) -> None:
    """Test that the authorization header is not stored in configuration."""
    mock_aiohttp_session(mocker, json_data={"token": "t", "expires_at": 2000})
    await exchanger.exchange("gho_secret")
    assert "Authorization" not in exchanger.config.headers


@pytest.mark.asyncio
async def test_exchange_missing_expiry_uses_default_lifetime(mocker, exchanger) -> None:
    """Test the default lifetime when the response carries no expiry."""
    mock_aiohttp_session(mocker, json_data={"token": "t"})
    exchanged = await exchanger.exchange("gho_secret")
    assert exchanged.expires_at == 1000 + constants.DEFAULT_INFERENCE_TOKEN_LIFETIME


@pytest.mark.asyncio
async def test_exchange_unauthorized(mocker, exchanger) -> None:
    """Test that HTTP 401 is classified as unauthorized."""
    mock_aiohttp_session(mocker, status=401)
    with pytest.raises(ExchangeError) as exc_info:
        await exchanger.exchange("gho_revoked")
    assert exc_info.value.kind == ExchangeErrorKind.UNAUTHORIZED
    assert exc_info.value.is_unauthorized


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 404, 429, 500, 503])
async def test_exchange_other_status_is_network(mocker, exchanger, status) -> None:
    """Test that non-2xx statuses other than 401 are transient failures."""
    mock_aiohttp_session(mocker, status=status)
    with pytest.raises(ExchangeError) as exc_info:
        await exchanger.exchange("gho_secret")
    assert exc_info.value.kind == ExchangeErrorKind.NETWORK
    assert not exc_info.value.is_unauthorized


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()],
)
async def test_exchange_transport_failure(mocker, exchanger, error) -> None:
    """Test that connection errors and timeouts are network failures."""
    mock_aiohttp_session(mocker, request_error=error)
    with pytest.raises(ExchangeError) as exc_info:
        await exchanger.exchange("gho_secret")
    assert exc_info.value.kind == ExchangeErrorKind.NETWORK


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        ["not", "an", "object"],
        {},
        {"token": ""},
        {"token": 42},
        {"token": "t", "expires_at": "soon"},
        {"token": "t", "expires_at": True},
    ],
)
async def test_exchange_malformed_payload(mocker, exchanger, payload) -> None:
    """Test that unusable response bodies are classified as malformed."""
    mock_aiohttp_session(mocker, json_data=payload)
    with pytest.raises(ExchangeError) as exc_info:
        await exchanger.exchange("gho_secret")
    assert exc_info.value.kind == ExchangeErrorKind.MALFORMED


@pytest.mark.asyncio
async def test_exchange_body_is_not_json(mocker, exchanger) -> None:
    """Test that non-JSON body is classified as malformed."""
    mock_aiohttp_session(mocker, json_error=ValueError("Expecting value"))
    with pytest.raises(ExchangeError) as exc_info:
        await exchanger.exchange("gho_secret")
    assert exc_info.value.kind == ExchangeErrorKind.MALFORMED


def test_inference_base_url_from_proxy_endpoint() -> None:
    """Test that inference API host is derived from the proxy endpoint."""
    assert (
        inference_base_url(SAMPLE_TOKEN)
        == "https://api.individual.githubcopilot.com"
    )


def test_inference_base_url_fallback() -> None:
    """Test the default inference API when token has no proxy endpoint."""
    assert inference_base_url("tid=abc;exp=1") == constants.DEFAULT_INFERENCE_BASE_URL


def test_token_sku() -> None:
    """Test reading subscription SKU from token."""
    assert token_sku(SAMPLE_TOKEN) == "copilot_for_individuals_subscriber"
    assert token_sku("tid=abc") is None


@pytest.mark.asyncio
async def test_check_models_success(mocker, exchanger) -> None:
    """Test that models are listed on the host derived from the token."""
    _, session = mock_aiohttp_session(mocker, json_data={"data": []})

    await exchanger.check_models(SAMPLE_TOKEN)

    url = session.get.call_args.args[0]
    headers = session.get.call_args.kwargs["headers"]
    assert url == "https://api.individual.githubcopilot.com/models"
    assert headers["Authorization"] == f"Bearer {SAMPLE_TOKEN}"
    assert headers["Copilot-Integration-Id"] == constants.DEFAULT_COPILOT_INTEGRATION_ID


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403, 500])
async def test_check_models_rejected(mocker, exchanger, status) -> None:
    """Test that refused models listing is never reported as unauthorized."""
    mock_aiohttp_session(mocker, status=status)

    with pytest.raises(ExchangeError) as exc_info:
        await exchanger.check_models(SAMPLE_TOKEN)

    assert exc_info.value.kind == ExchangeErrorKind.NETWORK
    assert str(status) in str(exc_info.value)


@pytest.mark.asyncio
async def test_check_models_transport_failure(mocker, exchanger) -> None:
    """Test that connection failure is reported as network."""
    mock_aiohttp_session(mocker, request_error=asyncio.TimeoutError())

    with pytest.raises(ExchangeError) as exc_info:
        await exchanger.check_models(SAMPLE_TOKEN)

    assert exc_info.value.kind == ExchangeErrorKind.NETWORK
