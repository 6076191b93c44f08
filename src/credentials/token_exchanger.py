"""Exchange of long-lived credentials for short-lived inference tokens."""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import aiohttp

import constants
import metrics
from credentials.errors import ExchangeError, ExchangeErrorKind
from log import get_logger
from models.config import TokenExchangeConfiguration

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExchangedToken:
    """Inference token returned by the upstream.

    Attributes:
        token: the inference token itself
        expires_at: expiration time in seconds since epoch
    """

    token: str
    expires_at: int


def _token_field(token: str, name: str) -> Optional[str]:
    """Return value of `name=value` field embedded in inference token."""
    prefix = f"{name}="
    for part in token.split(";"):
        if part.startswith(prefix):
            return part[len(prefix) :] or None
    return None


def inference_base_url(token: str) -> str:
    """Derive inference API base URL from the proxy endpoint in the token.

    Inference tokens carry the proxy endpoint in a `proxy-ep=` field, the
    inference API lives on the matching `api.` host.
    """
    proxy_endpoint = _token_field(token, "proxy-ep")
    if proxy_endpoint is None:
        return constants.DEFAULT_INFERENCE_BASE_URL
    return f"https://{proxy_endpoint.replace('proxy.', 'api.', 1)}"


def token_sku(token: str) -> Optional[str]:
    """Return the subscription SKU stored in the token, if any."""
    return _token_field(token, "sku")


class TokenExchanger:
    """Client for the upstream token exchange endpoint.

    Every call makes exactly one HTTP request bounded by the configured
    timeout. Failures are classified so that callers can tell a revoked
    credential from a transient problem.
    """

    def __init__(
        self,
        config: TokenExchangeConfiguration,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize exchanger with its configuration."""
        self.config = config
        self.clock = clock

    async def exchange(self, secret: str) -> ExchangedToken:
        """Exchange credential secret for inference token.

        Raises:
            ExchangeError: classified as unauthorized (HTTP 401), network
                (other non-2xx statuses, connection errors, timeouts) or
                malformed (unusable response body).
        """
        headers = self.config.headers
        headers["Authorization"] = f"Bearer {secret}"
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(str(self.config.url), headers=headers) as resp:
                    if resp.status == 401:
                        raise self._failure(
                            ExchangeErrorKind.UNAUTHORIZED,
                            "Token exchange rejected the credential",
                        )
                    if not 200 <= resp.status < 300:
                        raise self._failure(
                            ExchangeErrorKind.NETWORK,
                            f"Token exchange returned HTTP {resp.status}",
                        )
                    try:
                        data = await resp.json(content_type=None)
                    except ValueError as e:
                        raise self._failure(
                            ExchangeErrorKind.MALFORMED,
                            "Token exchange response is not JSON",
                        ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise self._failure(
                ExchangeErrorKind.NETWORK,
                f"Token exchange request failed: {type(e).__name__}",
            ) from e

        exchanged = self._parse(data)
        metrics.token_exchanges_total.labels("ok").inc()
        return exchanged

    async def check_models(self, token: str) -> None:
        """Check that inference token is accepted by the models endpoint.

        The credential itself was already accepted by the exchange, so every
        failure here is reported as network.

        Raises:
            ExchangeError: when the models endpoint can not be listed.
        """
        headers = self.config.headers
        headers["Authorization"] = f"Bearer {token}"
        headers["Copilot-Integration-Id"] = self.config.integration_id
        url = f"{inference_base_url(token)}/models"
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=headers) as resp:
                    status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExchangeError(
                ExchangeErrorKind.NETWORK,
                f"Models request failed: {type(e).__name__}",
            ) from e

        if not 200 <= status < 300:
            logger.warning("Models endpoint %s returned HTTP %d", url, status)
            raise ExchangeError(
                ExchangeErrorKind.NETWORK, f"Models endpoint returned HTTP {status}"
            )

    def _parse(self, data: Any) -> ExchangedToken:
        """Build exchanged token from response payload."""
        if not isinstance(data, dict):
            raise self._failure(
                ExchangeErrorKind.MALFORMED, "Token exchange response is not an object"
            )
        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise self._failure(
                ExchangeErrorKind.MALFORMED, "No token in token exchange response"
            )

        expires_at = data.get("expires_at")
        if expires_at is None:
            expires_at = (
                int(self.clock()) + constants.DEFAULT_INFERENCE_TOKEN_LIFETIME
            )
        elif isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise self._failure(
                ExchangeErrorKind.MALFORMED,
                "Invalid expires_at in token exchange response",
            )
        return ExchangedToken(token=token, expires_at=int(expires_at))

    @staticmethod
    def _failure(kind: ExchangeErrorKind, message: str) -> ExchangeError:
        """Count the failure and construct the exception."""
        metrics.token_exchanges_total.labels(kind.value).inc()
        return ExchangeError(kind, message)
