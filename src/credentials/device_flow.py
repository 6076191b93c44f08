"""GitHub OAuth device flow used to enroll new credentials."""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import aiohttp

import constants
from credentials.errors import DeviceFlowError
from log import get_logger

logger = get_logger(__name__)


class DeviceFlowStatus(str, Enum):
    """State of device flow authorization."""

    AUTHORIZED = "authorized"
    PENDING = "pending"
    SLOW_DOWN = "slow_down"
    EXPIRED = "expired"
    DENIED = "denied"
    ERROR = "error"


# GitHub error codes returned while polling
POLL_ERRORS = {
    "authorization_pending": DeviceFlowStatus.PENDING,
    "slow_down": DeviceFlowStatus.SLOW_DOWN,
    "expired_token": DeviceFlowStatus.EXPIRED,
    "access_denied": DeviceFlowStatus.DENIED,
}


@dataclass(frozen=True)
class DeviceCode:
    """Device and user codes of started device flow."""

    device_code: str
    user_code: str
    verification_uri: str
    expires_in: Optional[int]
    interval: int


@dataclass(frozen=True)
class DeviceFlowPoll:
    """Result of one poll for the access token."""

    status: DeviceFlowStatus
    access_token: Optional[str] = None
    error: Optional[str] = None

    def __repr__(self) -> str:
        """Return textual representation without the access token."""
        return f"DeviceFlowPoll(status={self.status!r}, error={self.error!r})"


class DeviceFlow:
    """Client for GitHub OAuth device flow endpoints."""

    def __init__(self, client_id: str, timeout: float) -> None:
        """Initialize client with OAuth application ID."""
        self.client_id = client_id
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def _post_form(self, url: str, form: dict[str, str]) -> Any:
        headers = {"Accept": "application/json"}
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, data=form, headers=headers) as resp:
                    if not 200 <= resp.status < 300:
                        raise DeviceFlowError(
                            f"GitHub request failed: HTTP {resp.status}"
                        )
                    return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise DeviceFlowError(f"GitHub request failed: {e}") from e

    async def start(self) -> DeviceCode:
        """Request device and user codes."""
        data = await self._post_form(
            constants.DEVICE_CODE_URL,
            {"client_id": self.client_id, "scope": constants.DEVICE_FLOW_SCOPE},
        )
        if not isinstance(data, dict) or not all(
            data.get(field) for field in ("device_code", "user_code", "verification_uri")
        ):
            raise DeviceFlowError("GitHub device code response missing fields")

        logger.info("Device flow started, user code %s", data["user_code"])
        return DeviceCode(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data["verification_uri"],
            expires_in=data.get("expires_in"),
            interval=data.get("interval") or constants.DEFAULT_DEVICE_FLOW_INTERVAL,
        )

    async def poll(self, device_code: str) -> DeviceFlowPoll:
        """Ask once whether the user authorized the device."""
        data = await self._post_form(
            constants.DEVICE_ACCESS_TOKEN_URL,
            {
                "client_id": self.client_id,
                "device_code": device_code,
                "grant_type": constants.DEVICE_FLOW_GRANT_TYPE,
            },
        )
        if not isinstance(data, dict):
            raise DeviceFlowError("GitHub access token response is not an object")

        access_token = data.get("access_token")
        if isinstance(access_token, str) and access_token:
            return DeviceFlowPoll(
                status=DeviceFlowStatus.AUTHORIZED, access_token=access_token
            )

        error = data.get("error") or "unknown"
        status = POLL_ERRORS.get(error, DeviceFlowStatus.ERROR)
        logger.debug("Device flow poll: %s", error)
        return DeviceFlowPoll(status=status, error=error)

    async def fetch_login(self, access_token: str) -> Optional[str]:
        """Return GitHub login of the token owner, None when unavailable."""
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {access_token}",
        }
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(
                    constants.GITHUB_USER_URL, headers=headers
                ) as resp:
                    if resp.status != 200:
                        logger.warning("GitHub user lookup returned %d", resp.status)
                        return None
                    user = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("GitHub user lookup failed: %s", e)
            return None
        if not isinstance(user, dict):
            return None
        return user.get("login") or None
