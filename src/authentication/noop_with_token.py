"""No-op authentication that still requires a bearer token, for development only."""

from fastapi import Request

from constants import DEFAULT_USER_NAME
from authentication.interface import AuthTuple
from authentication.noop import INSECURE_MODE_WARNING, NoopAuthDependency
from authentication.utils import extract_user_token
from log import get_logger

logger = get_logger(__name__)


class NoopWithTokenAuthDependency(
    NoopAuthDependency
):  # pylint: disable=too-few-public-methods
    """Like no-op authentication, but reject requests without bearer token.

    The token itself is not verified.
    """

    async def __call__(self, request: Request) -> AuthTuple:
        """Return the auth tuple with the bearer token sent by the client.

        Raises:
            HTTPException: 401 when the Authorization header is missing.
        """
        logger.warning(INSECURE_MODE_WARNING, "No-op with token")
        user_token = extract_user_token(request.headers)
        return (
            self._user_id(request),
            DEFAULT_USER_NAME,
            self.skip_userid_check,
            user_token,
        )
