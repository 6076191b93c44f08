"""Authentication that trusts the caller, for development only.

The user ID is taken from the `user_id` query parameter so that quotas of
different users can be exercised without an identity provider.
"""

from fastapi import Request

from constants import (
    DEFAULT_USER_NAME,
    DEFAULT_USER_UID,
    NO_USER_TOKEN,
    DEFAULT_VIRTUAL_PATH,
)
from authentication.interface import AuthInterface, AuthTuple
from log import get_logger

logger = get_logger(__name__)

INSECURE_MODE_WARNING = (
    "%s authentication is being used, the gateway runs in insecure mode "
    "intended solely for development"
)


class NoopAuthDependency(AuthInterface):  # pylint: disable=too-few-public-methods
    """Accept every request as coming from the user named in query string."""

    def __init__(self, virtual_path: str = DEFAULT_VIRTUAL_PATH) -> None:
        """Initialize the dependency."""
        self.virtual_path = virtual_path
        self.skip_userid_check = True

    def _user_id(self, request: Request) -> str:
        user_id = request.query_params.get("user_id", DEFAULT_USER_UID)
        logger.debug("Retrieved user ID: %s", user_id)
        return user_id

    async def __call__(self, request: Request) -> AuthTuple:
        """Return the auth tuple without a user token."""
        logger.warning(INSECURE_MODE_WARNING, "No-op")
        return (
            self._user_id(request),
            DEFAULT_USER_NAME,
            self.skip_userid_check,
            NO_USER_TOKEN,
        )
