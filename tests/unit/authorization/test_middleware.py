"""Unit tests for the authorization middleware."""

import pytest
from fastapi import HTTPException, status
from pytest_mock import MockerFixture
from starlette.requests import Request

from authentication.interface import AuthTuple
from authorization.middleware import (
    _perform_authorization_check,
    authorize,
    get_authorization_resolvers,
)
from authorization.resolvers import AdminUsersRolesResolver, GenericAccessResolver
from configuration import AppConfig
from models.config import Action


@pytest.fixture(name="dummy_auth_tuple")
def fixture_dummy_auth_tuple() -> AuthTuple:
    """Standard auth tuple for testing."""
    return ("user_id", "username", False, "mock_token")


@pytest.fixture(name="admin_auth_tuple")
def fixture_admin_auth_tuple() -> AuthTuple:
    """Auth tuple of configured administrator."""
    return ("admin", "admin", False, "mock_token")


@pytest.fixture(autouse=True)
def _configured_resolvers(minimal_config):
    """Load configuration with one administrator and reset cached resolvers."""
    AppConfig().init_from_dict(minimal_config)
    get_authorization_resolvers.cache_clear()
    yield
    get_authorization_resolvers.cache_clear()


def make_request() -> Request:
    """Create plain HTTP request."""
    return Request(scope={"type": "http"})


class TestGetAuthorizationResolvers:
    """Test cases for the get_authorization_resolvers function."""

    def test_resolver_types(self):
        """Resolvers are created from configuration."""
        role_resolver, access_resolver = get_authorization_resolvers()
        assert isinstance(role_resolver, AdminUsersRolesResolver)
        assert isinstance(access_resolver, GenericAccessResolver)
        assert role_resolver.admin_users == frozenset({"admin"})

    def test_resolvers_are_cached(self):
        """Second call returns the same resolvers."""
        assert get_authorization_resolvers() is get_authorization_resolvers()


class TestPerformAuthorizationCheck:
    """Test cases for _perform_authorization_check function."""

    @pytest.mark.asyncio
    async def test_missing_auth_kwarg(self):
        """Endpoint without auth argument is a programming error."""
        with pytest.raises(HTTPException) as exc_info:
            await _perform_authorization_check(Action.QUERY, {})
        assert exc_info.value.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR

    @pytest.mark.asyncio
    async def test_access_denied(self, dummy_auth_tuple):
        """Regular user can not manage credentials."""
        with pytest.raises(HTTPException) as exc_info:
            await _perform_authorization_check(
                Action.MANAGE_CREDENTIALS, {"auth": dummy_auth_tuple}
            )
        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
        assert "manage_credentials" in exc_info.value.detail["cause"]

    @pytest.mark.asyncio
    async def test_regular_user_request_state(self, dummy_auth_tuple):
        """Request state carries actions and admin flag."""
        request = make_request()
        await _perform_authorization_check(
            Action.QUERY, {"auth": dummy_auth_tuple, "request": request}
        )
        assert Action.QUERY in request.state.authorized_actions
        assert Action.MANAGE_MODELS not in request.state.authorized_actions
        assert request.state.is_admin is False

    @pytest.mark.asyncio
    async def test_admin_request_state(self, admin_auth_tuple):
        """Administrator gets every action and admin flag."""
        request = make_request()
        await _perform_authorization_check(
            Action.MANAGE_CREDENTIALS, {"auth": admin_auth_tuple, "request": request}
        )
        assert request.state.authorized_actions == set(Action) - {Action.ADMIN}
        assert request.state.is_admin is True

    @pytest.mark.asyncio
    async def test_without_request(self, dummy_auth_tuple):
        """Check passes even when the endpoint has no request argument."""
        await _perform_authorization_check(Action.QUERY, {"auth": dummy_auth_tuple})


class TestAuthorizeDecorator:
    """Test cases for authorize decorator."""

    @pytest.mark.asyncio
    async def test_allowed(self, dummy_auth_tuple):
        """Decorated endpoint is called when access is granted."""

        @authorize(Action.QUERY)
        async def endpoint(request: Request, auth: AuthTuple) -> str:
            _ = request, auth
            return "called"

        result = await endpoint(request=make_request(), auth=dummy_auth_tuple)
        assert result == "called"

    @pytest.mark.asyncio
    async def test_denied(self, mocker: MockerFixture, dummy_auth_tuple):
        """Decorated endpoint is not called when access is denied."""
        called = mocker.AsyncMock()

        @authorize(Action.MANAGE_MODELS)
        async def endpoint(request: Request, auth: AuthTuple) -> None:
            await called(request, auth)

        with pytest.raises(HTTPException) as exc_info:
            await endpoint(request=make_request(), auth=dummy_auth_tuple)
        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
        called.assert_not_called()

    @pytest.mark.asyncio
    async def test_preserves_metadata(self):
        """Wrapper keeps name of decorated function."""

        @authorize(Action.INFO)
        async def my_endpoint(auth: AuthTuple) -> None:
            _ = auth

        assert my_endpoint.__name__ == "my_endpoint"
