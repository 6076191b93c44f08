"""Unit tests for the GitHub device flow client."""

import aiohttp
import pytest

import constants
from credentials.device_flow import DeviceFlow, DeviceFlowStatus
from credentials.errors import DeviceFlowError
from tests.unit.utils.http_helpers import mock_aiohttp_session


@pytest.fixture(name="device_flow")
def device_flow_fixture() -> DeviceFlow:
    """Device flow client."""
    return DeviceFlow(client_id="client-id", timeout=3.0)


@pytest.mark.asyncio
async def test_start(mocker, device_flow) -> None:
    """Test that device code is parsed from the response."""
    _, session = mock_aiohttp_session(
        mocker,
        json_data={
            "device_code": "dev-123",
            "user_code": "WDJB-MJHT",
            "verification_uri": "https://github.com/login/device",
            "expires_in": 900,
        },
    )

    device_code = await device_flow.start()

    assert device_code.device_code == "dev-123"
    assert device_code.user_code == "WDJB-MJHT"
    assert device_code.expires_in == 900
    assert device_code.interval == constants.DEFAULT_DEVICE_FLOW_INTERVAL

    url = session.post.call_args.args[0]
    assert url == constants.DEVICE_CODE_URL
    assert session.post.call_args.kwargs["data"]["client_id"] == "client-id"


@pytest.mark.asyncio
async def test_start_missing_fields(mocker, device_flow) -> None:
    """Test that incomplete response is rejected."""
    mock_aiohttp_session(mocker, json_data={"device_code": "dev-123"})
    with pytest.raises(DeviceFlowError):
        await device_flow.start()


@pytest.mark.asyncio
async def test_start_http_error(mocker, device_flow) -> None:
    """Test that HTTP error is reported."""
    mock_aiohttp_session(mocker, status=500)
    with pytest.raises(DeviceFlowError, match="HTTP 500"):
        await device_flow.start()


@pytest.mark.asyncio
async def test_start_connection_error(mocker, device_flow) -> None:
    """Test that connection error is reported."""
    mock_aiohttp_session(
        mocker, request_error=aiohttp.ClientConnectionError("refused")
    )
    with pytest.raises(DeviceFlowError):
        await device_flow.start()


@pytest.mark.asyncio
async def test_poll_authorized(mocker, device_flow) -> None:
    """Test that access token is returned once the user authorized."""
    mock_aiohttp_session(
        mocker, json_data={"access_token": "gho_new", "token_type": "bearer"}
    )
    poll = await device_flow.poll("dev-123")
    assert poll.status == DeviceFlowStatus.AUTHORIZED
    assert poll.access_token == "gho_new"
    assert "gho_new" not in repr(poll)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error,expected",
    [
        ("authorization_pending", DeviceFlowStatus.PENDING),
        ("slow_down", DeviceFlowStatus.SLOW_DOWN),
        ("expired_token", DeviceFlowStatus.EXPIRED),
        ("access_denied", DeviceFlowStatus.DENIED),
        ("incorrect_client_credentials", DeviceFlowStatus.ERROR),
    ],
)
async def test_poll_errors(mocker, device_flow, error, expected) -> None:
    """Test mapping of GitHub poll errors."""
    mock_aiohttp_session(mocker, json_data={"error": error})
    poll = await device_flow.poll("dev-123")
    assert poll.status == expected
    assert poll.error == error
    assert poll.access_token is None


@pytest.mark.asyncio
async def test_fetch_login(mocker, device_flow) -> None:
    """Test retrieving login of the token owner."""
    _, session = mock_aiohttp_session(mocker, json_data={"login": "octocat"})
    assert await device_flow.fetch_login("gho_new") == "octocat"
    headers = session.get.call_args.kwargs["headers"]
    assert headers["Authorization"] == "Bearer gho_new"


@pytest.mark.asyncio
async def test_fetch_login_failure(mocker, device_flow) -> None:
    """Test that failed lookup returns None."""
    mock_aiohttp_session(mocker, status=401)
    assert await device_flow.fetch_login("gho_new") is None
