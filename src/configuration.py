"""Configuration loader."""

import logging
from typing import Any, Optional

import yaml
from models.config import (
    AuthorizationConfiguration,
    Configuration,
    ServiceConfiguration,
    AuthenticationConfiguration,
    DatabaseConfiguration,
    TokenExchangeConfiguration,
    RotationConfiguration,
    QuotaConfiguration,
)


logger = logging.getLogger(__name__)


class LogicError(Exception):
    """Error in application logic."""


class AppConfig:
    """Process wide holder of the gateway configuration.

    The configuration is read once at startup, every section is then
    available through read-only properties. Accessing any section before
    the configuration is loaded is a programming error.
    """

    _instance = None

    def __new__(cls, *args: Any, **kwargs: Any) -> "AppConfig":
        """Return the shared instance."""
        if not isinstance(cls._instance, cls):
            cls._instance = super().__new__(cls, *args, **kwargs)
        return cls._instance

    def __init__(self) -> None:
        """Start with no configuration."""
        self._configuration: Optional[Configuration] = None

    def load_configuration(self, filename: str) -> None:
        """Load configuration from YAML file."""
        with open(filename, encoding="utf-8") as fin:
            config_dict = yaml.safe_load(fin)
        # the configuration contains secrets, log only its shape
        logger.info("Loaded configuration sections: %s", sorted(config_dict))
        self.init_from_dict(config_dict)

    def init_from_dict(self, config_dict: dict[Any, Any]) -> None:
        """Validate and store configuration given as dictionary."""
        self._configuration = Configuration(**config_dict)

    def is_loaded(self) -> bool:
        """Tell whether configuration is available."""
        return self._configuration is not None

    def _loaded(self) -> Configuration:
        if self._configuration is None:
            raise LogicError("logic error: configuration is not loaded")
        return self._configuration

    @property
    def configuration(self) -> Configuration:
        """Return the whole configuration."""
        return self._loaded()

    @property
    def service_configuration(self) -> ServiceConfiguration:
        """Return service configuration."""
        return self._loaded().service

    @property
    def authentication_configuration(self) -> AuthenticationConfiguration:
        """Return authentication configuration."""
        return self._loaded().authentication

    @property
    def authorization_configuration(self) -> AuthorizationConfiguration:
        """Return authorization configuration, default rules when none is set."""
        return self._loaded().authorization or AuthorizationConfiguration()

    @property
    def database_configuration(self) -> DatabaseConfiguration:
        """Return database configuration."""
        return self._loaded().database

    @property
    def token_exchange_configuration(self) -> TokenExchangeConfiguration:
        """Return settings of the GitHub token exchange."""
        return self._loaded().token_exchange

    @property
    def rotation_configuration(self) -> RotationConfiguration:
        """Return credential rotation configuration."""
        return self._loaded().rotation

    @property
    def quota_configuration(self) -> QuotaConfiguration:
        """Return quota configuration."""
        return self._loaded().quota


configuration: AppConfig = AppConfig()
