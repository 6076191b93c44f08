"""Authorization resolvers for role evaluation and access control."""

from abc import ABC, abstractmethod

import constants
from authentication.interface import AuthTuple
from log import get_logger
from models.config import AccessRule, Action

logger = get_logger(__name__)


UserRoles = set[str]


class RolesResolver(ABC):  # pylint: disable=too-few-public-methods
    """Base class for all role resolution strategies."""

    @abstractmethod
    async def resolve_roles(self, auth: AuthTuple) -> UserRoles:
        """Given an auth tuple, return the set of user roles."""


class AdminUsersRolesResolver(RolesResolver):  # pylint: disable=too-few-public-methods
    """Grant the admin role to users listed in configuration."""

    def __init__(self, admin_users: list[str]):
        """Initialize the resolver with IDs of administrators."""
        self.admin_users = frozenset(admin_users)

    async def resolve_roles(self, auth: AuthTuple) -> UserRoles:
        """Return admin role for administrators, no roles for anyone else."""
        user_id, _, _, _ = auth
        if user_id in self.admin_users:
            return {constants.ADMIN_ROLE}
        return set()


class AccessResolver(ABC):  # pylint: disable=too-few-public-methods
    """Base class for all access resolution strategies."""

    @abstractmethod
    def check_access(self, action: Action, user_roles: UserRoles) -> bool:
        """Check if the user has access to the specified action based on their roles."""

    @abstractmethod
    def get_actions(self, user_roles: UserRoles) -> set[Action]:
        """Get the actions that the user can perform based on their roles."""

    def is_admin(self, user_roles: UserRoles) -> bool:
        """Check if the roles grant unrestricted access, including quota bypass."""
        return self.check_access(Action.ADMIN, user_roles)


class GenericAccessResolver(AccessResolver):  # pylint: disable=too-few-public-methods
    """Role-based access resolver driven by configured access rules.

    The special action ADMIN grants every other action as well.
    """

    def __init__(self, access_rules: list[AccessRule]):
        """Initialize the access resolver with access rules."""
        self._access_lookup: dict[str, set[Action]] = {}
        for rule in access_rules:
            # admin already implies everything, listing more is a mistake
            if Action.ADMIN in rule.actions and len(rule.actions) > 1:
                raise ValueError(
                    "Access rule with 'admin' action cannot have other actions"
                )
            self._access_lookup.setdefault(rule.role, set()).update(rule.actions)
        self.access_rules = access_rules

    def _role_actions(self, user_roles: UserRoles) -> set[Action]:
        return {
            action
            for role in user_roles
            for action in self._access_lookup.get(role, set())
        }

    def check_access(self, action: Action, user_roles: UserRoles) -> bool:
        """Check if the user has access to the specified action based on their roles."""
        actions = self._role_actions(user_roles)
        allowed = Action.ADMIN in actions or action in actions
        logger.debug(
            "Access %s: roles %s, action '%s'",
            "granted" if allowed else "denied",
            sorted(user_roles),
            action,
        )
        return allowed

    def get_actions(self, user_roles: UserRoles) -> set[Action]:
        """Get the actions that the user can perform based on their roles."""
        actions = self._role_actions(user_roles)
        if Action.ADMIN in actions:
            return set(Action) - {Action.ADMIN}
        return actions
