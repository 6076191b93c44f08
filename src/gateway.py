"""Long-lived gateway components retrieval."""

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.orm import Session

from credentials.credential_store import CredentialStore
from credentials.device_flow import DeviceFlow
from credentials.health_monitor import HealthMonitor
from credentials.rotation_manager import RotationManager
from credentials.sql_credential_store import SQLCredentialStore
from credentials.token_cache import TokenCache
from credentials.token_exchanger import TokenExchanger
from log import get_logger
from models.config import Configuration
from quota.model_config_store import ModelConfigStore
from quota.quota_ledger import QuotaLedger
from quota.usage_store import SQLUsageStore, UsageStore
from utils.types import Singleton

logger = get_logger(__name__)


@dataclass
class Gateway:  # pylint: disable=too-many-instance-attributes
    """Components shared by all requests."""

    credential_store: CredentialStore
    model_config_store: ModelConfigStore
    exchanger: TokenExchanger
    token_cache: TokenCache
    health_monitor: HealthMonitor
    rotation_manager: RotationManager
    usage_store: UsageStore
    quota_ledger: QuotaLedger
    device_flow: DeviceFlow


def build_usage_store(config: Configuration) -> UsageStore:
    """Construct usage store, the main database is used unless quota has its own."""
    quota_config = config.quota
    if quota_config.sqlite is not None or quota_config.postgres is not None:
        logger.info("Using dedicated usage storage")
        return SQLUsageStore(quota_config.sqlite, quota_config.postgres)
    return SQLUsageStore(config.database.sqlite, config.database.postgres)


def build_gateway(
    config: Configuration, session_factory: Callable[[], Session]
) -> Gateway:
    """Construct all gateway components from configuration."""
    exchange_config = config.token_exchange

    credential_store = SQLCredentialStore(session_factory)
    model_config_store = ModelConfigStore(session_factory)
    exchanger = TokenExchanger(exchange_config)
    token_cache = TokenCache(margin=exchange_config.expiry_margin)
    health_monitor = HealthMonitor(credential_store, exchanger)

    fallback_secret = None
    if exchange_config.fallback_secret is not None:
        fallback_secret = exchange_config.fallback_secret.get_secret_value()

    rotation_manager = RotationManager(
        credential_store,
        exchanger,
        health_monitor,
        token_cache,
        pool_refresh_interval=config.rotation.pool_refresh_interval,
        fallback_secret=fallback_secret,
    )
    usage_store = build_usage_store(config)
    quota_ledger = QuotaLedger(
        usage_store, model_config_store.get_overrides, config.quota
    )
    device_flow = DeviceFlow(
        exchange_config.device_flow_client_id, exchange_config.timeout
    )
    return Gateway(
        credential_store=credential_store,
        model_config_store=model_config_store,
        exchanger=exchanger,
        token_cache=token_cache,
        health_monitor=health_monitor,
        rotation_manager=rotation_manager,
        usage_store=usage_store,
        quota_ledger=quota_ledger,
        device_flow=device_flow,
    )


class GatewayHolder(metaclass=Singleton):
    """Container for initialised gateway components."""

    _gateway: Optional[Gateway] = None

    def load(
        self, config: Configuration, session_factory: Callable[[], Session]
    ) -> None:
        """Build gateway components according to configuration."""
        logger.info("Building gateway components")
        self._gateway = build_gateway(config, session_factory)

    def set(self, gateway: Optional[Gateway]) -> None:
        """Replace gateway components, used by tests."""
        self._gateway = gateway

    def get(self) -> Gateway:
        """Return initialised gateway components."""
        if self._gateway is None:
            raise RuntimeError(
                "Gateway has not been initialised. Ensure 'load(..)' has been called."
            )
        return self._gateway
