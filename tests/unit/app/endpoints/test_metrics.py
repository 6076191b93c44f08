"""Unit tests for the /metrics REST API endpoint."""

import pytest
from fastapi import Request
from pytest_mock import MockerFixture
from sqlalchemy.exc import OperationalError

from app.endpoints.metrics import metrics_endpoint_handler
from authentication.interface import AuthTuple
from gateway import GatewayHolder
from tests.unit.utils.auth_helpers import mock_authorization_resolvers
from tests.unit.utils.gateway_helpers import make_credential, mock_gateway


@pytest.fixture(name="auth")
def auth_fixture() -> AuthTuple:
    """Authorization tuple required by URL endpoint handler."""
    return ("test_user_id", "test_user", False, "test_token")


@pytest.mark.asyncio
async def test_metrics_endpoint(mocker: MockerFixture, auth: AuthTuple) -> None:
    """Test the metrics endpoint handler."""
    mock_authorization_resolvers(mocker)
    gateway = mock_gateway(mocker)
    gateway.credential_store.list_all.return_value = [
        make_credential("c1"),
        make_credential("c2", status="dead"),
    ]

    request = Request(scope={"type": "http"})
    response = await metrics_endpoint_handler(auth=auth, request=request)
    assert response is not None
    assert response.status_code == 200
    assert "text/plain" in response.headers["Content-Type"]

    response_body = response.body.decode()

    # Assert metrics were initialized
    assert "# TYPE gw_rest_api_calls_total counter" in response_body
    assert "# TYPE gw_response_duration_seconds histogram" in response_body
    assert "# TYPE gw_token_exchanges_total counter" in response_body
    assert "# TYPE gw_llm_calls_total counter" in response_body
    assert 'gw_credentials_total{status="alive"} 1.0' in response_body
    assert 'gw_credentials_total{status="dead"} 1.0' in response_body


@pytest.mark.asyncio
async def test_metrics_endpoint_before_startup(
    mocker: MockerFixture, auth: AuthTuple
) -> None:
    """Metrics are served even before the gateway is built."""
    mock_authorization_resolvers(mocker)
    mocker.patch.object(GatewayHolder(), "_gateway", None)

    request = Request(scope={"type": "http"})
    response = await metrics_endpoint_handler(auth=auth, request=request)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_metrics_endpoint_database_failure(
    mocker: MockerFixture, auth: AuthTuple
) -> None:
    """Database failure does not break the metrics endpoint."""
    mock_authorization_resolvers(mocker)
    gateway = mock_gateway(mocker)
    gateway.credential_store.list_all.side_effect = OperationalError(
        "SELECT", {}, Exception("connection refused")
    )

    request = Request(scope={"type": "http"})
    response = await metrics_endpoint_handler(auth=auth, request=request)
    assert response.status_code == 200
