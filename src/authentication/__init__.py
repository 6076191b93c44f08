"""This package contains authentication code and modules."""

import os

import constants
from authentication import noop, noop_with_token
from authentication.interface import AuthInterface
from configuration import LogicError, configuration
from log import get_logger

logger = get_logger(__name__)


def get_auth_dependency(
    virtual_path: str = constants.DEFAULT_VIRTUAL_PATH,
) -> AuthInterface:
    """Select the configured authentication dependency interface."""
    try:
        module = configuration.authentication_configuration.module
    except LogicError:
        # Only load once if not already loaded
        config_path = os.getenv(
            constants.CONFIG_PATH_ENV_VARIABLE,
            "tests/configuration/ai-gateway.yaml",
        )
        configuration.load_configuration(config_path)
        module = configuration.authentication_configuration.module

    logger.debug(
        "Initializing authentication dependency: module='%s', virtual_path='%s'",
        module,
        virtual_path,
    )

    match module:
        case constants.AUTH_MOD_NOOP:
            return noop.NoopAuthDependency(virtual_path=virtual_path)
        case constants.AUTH_MOD_NOOP_WITH_TOKEN:
            return noop_with_token.NoopWithTokenAuthDependency(
                virtual_path=virtual_path
            )
        case _:
            err_msg = f"Unsupported authentication module '{module}'"
            logger.error(err_msg)
            raise ValueError(err_msg)
