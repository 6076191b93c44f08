"""Unit tests for the authorization resolvers."""

import pytest

import constants
from authorization.resolvers import AdminUsersRolesResolver, GenericAccessResolver
from models.config import AccessRule, Action, default_access_rules


class TestAdminUsersRolesResolver:
    """Test cases for AdminUsersRolesResolver."""

    @pytest.mark.asyncio
    async def test_admin_user(self):
        """Users listed in configuration get the admin role."""
        resolver = AdminUsersRolesResolver(["alice", "bob"])
        roles = await resolver.resolve_roles(("alice", "alice", False, ""))
        assert roles == {constants.ADMIN_ROLE}

    @pytest.mark.asyncio
    async def test_regular_user(self):
        """Other users get no roles."""
        resolver = AdminUsersRolesResolver(["alice"])
        roles = await resolver.resolve_roles(("mallory", "mallory", False, ""))
        assert roles == set()

    @pytest.mark.asyncio
    async def test_match_by_user_id_only(self):
        """Username equal to admin ID does not grant anything."""
        resolver = AdminUsersRolesResolver(["alice"])
        roles = await resolver.resolve_roles(("user-1", "alice", False, ""))
        assert roles == set()


class TestGenericAccessResolver:
    """Test cases for GenericAccessResolver."""

    @pytest.fixture
    def resolver(self) -> GenericAccessResolver:
        """Resolver with default access rules."""
        return GenericAccessResolver(default_access_rules())

    def test_everyone_can_query(self, resolver):
        """Everyone role grants regular actions."""
        assert resolver.check_access(Action.QUERY, {"*"})
        assert resolver.check_access(Action.GET_QUOTA, {"*"})
        assert resolver.check_access(Action.GET_MODELS, {"*"})

    def test_everyone_can_not_manage(self, resolver):
        """Management actions are not granted to everyone."""
        assert not resolver.check_access(Action.MANAGE_CREDENTIALS, {"*"})
        assert not resolver.check_access(Action.MANAGE_MODELS, {"*"})
        assert not resolver.is_admin({"*"})

    def test_admin_can_do_everything(self, resolver):
        """Admin role grants every action."""
        roles = {"*", constants.ADMIN_ROLE}
        for action in Action:
            assert resolver.check_access(action, roles)
        assert resolver.is_admin(roles)

    def test_get_actions_for_admin(self, resolver):
        """Admin gets all actions except the special admin action."""
        actions = resolver.get_actions({constants.ADMIN_ROLE})
        assert actions == set(Action) - {Action.ADMIN}

    def test_get_actions_for_everyone(self, resolver):
        """Everyone gets only the configured actions."""
        actions = resolver.get_actions({"*"})
        assert Action.QUERY in actions
        assert Action.MANAGE_CREDENTIALS not in actions

    def test_unknown_role(self, resolver):
        """Roles without rules grant nothing."""
        assert not resolver.check_access(Action.QUERY, {"unknown"})
        assert resolver.get_actions({"unknown"}) == set()

    def test_rules_for_same_role_are_merged(self):
        """Multiple rules for one role add up."""
        resolver = GenericAccessResolver(
            [
                AccessRule(role="ops", actions=[Action.MANAGE_CREDENTIALS]),
                AccessRule(role="ops", actions=[Action.MANAGE_MODELS]),
            ]
        )
        assert resolver.get_actions({"ops"}) == {
            Action.MANAGE_CREDENTIALS,
            Action.MANAGE_MODELS,
        }

    def test_admin_action_with_others(self):
        """Admin action can not be combined with other actions."""
        with pytest.raises(ValueError, match="cannot have other actions"):
            GenericAccessResolver(
                [AccessRule(role="ops", actions=[Action.ADMIN, Action.QUERY])]
            )
