"""Authorization of REST API endpoints by action."""

from functools import lru_cache, wraps
from typing import Any, Callable, Tuple

from fastapi import HTTPException, status

from authorization.resolvers import (
    AccessResolver,
    AdminUsersRolesResolver,
    GenericAccessResolver,
    RolesResolver,
)
from configuration import configuration
from log import get_logger
from models.config import Action
from models.responses import ForbiddenResponse

logger = get_logger(__name__)

# role of every authenticated user
EVERYONE_ROLE = "*"


@lru_cache(maxsize=1)
def get_authorization_resolvers() -> Tuple[RolesResolver, AccessResolver]:
    """Build resolvers from the authorization configuration once."""
    authorization_cfg = configuration.authorization_configuration
    return (
        AdminUsersRolesResolver(authorization_cfg.admin_users),
        GenericAccessResolver(authorization_cfg.access_rules),
    )


async def _perform_authorization_check(action: Action, kwargs: dict[str, Any]) -> None:
    """Check that the caller may perform action.

    The resolved actions and the admin flag are stored in request state, the
    quota check relies on them.
    """
    if "auth" not in kwargs:
        logger.error("Endpoint protected by @authorize has no 'auth' argument")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "response": "Internal server error",
                "cause": "Endpoint does not accept authentication tuple",
            },
        )

    role_resolver, access_resolver = get_authorization_resolvers()
    roles = await role_resolver.resolve_roles(kwargs["auth"]) | {EVERYONE_ROLE}

    if not access_resolver.check_access(action, roles):
        logger.info("User %s denied action %s", kwargs["auth"][0], action.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ForbiddenResponse(action=action.value).dump_detail(),
        )

    request = kwargs.get("request")
    if request is not None:
        request.state.authorized_actions = access_resolver.get_actions(roles)
        request.state.is_admin = access_resolver.is_admin(roles)


def authorize(action: Action) -> Callable:
    """Require permission to perform action before the endpoint runs."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            await _perform_authorization_check(action, kwargs)
            return await func(*args, **kwargs)

        return wrapper

    return decorator
