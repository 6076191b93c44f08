"""Daily per-user per-model request quotas."""

import asyncio
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, TypeVar
from zoneinfo import ZoneInfo

import constants
import metrics
from log import get_logger
from models.config import QuotaConfiguration
from quota.model_tier import ModelOverride, ModelTier, classify, resolve_daily_limit
from quota.usage_store import UsageStore

logger = get_logger(__name__)

T = TypeVar("T")

OverridesProvider = Callable[[], Mapping[str, ModelOverride]]


def utc_now() -> datetime:
    """Return current time in UTC."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class QuotaStatus:
    """Result of quota check.

    Attributes:
        allowed: whether the user can send one more request
        remaining: requests left today, QUOTA_UNLIMITED when not limited
        limit: daily limit, 0 for unlimited models, QUOTA_UNLIMITED for admins
        tier: tier of the model
    """

    allowed: bool
    remaining: int
    limit: int
    tier: ModelTier


@dataclass(frozen=True)
class ModelUsage:
    """Today's usage of one model by one user."""

    model_id: str
    used: int
    limit: int
    remaining: int
    tier: ModelTier


class QuotaLedger:
    """Check and record daily usage against resolved limits.

    Checks fail open and increments are best-effort: storage problems are
    logged and never propagate to the caller. A check followed by an
    increment is not atomic, concurrent requests can overshoot the limit by
    the number of requests in flight.
    """

    def __init__(
        self,
        usage_store: UsageStore,
        overrides_provider: OverridesProvider,
        config: QuotaConfiguration,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize quota ledger."""
        self.usage_store = usage_store
        self.overrides_provider = overrides_provider
        self.config = config
        self.clock = clock
        self.timezone = ZoneInfo(config.day_timezone)
        self._pending: set[asyncio.Task[None]] = set()

    def today(self) -> date:
        """Return current calendar day in the quota timezone."""
        return self.clock().astimezone(self.timezone).date()

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run blocking storage call in a worker thread with timeout."""
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args), timeout=self.config.operation_timeout
        )

    async def _overrides(self) -> Mapping[str, ModelOverride]:
        try:
            return await self._run(self.overrides_provider)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Unable to read model overrides, using defaults: %s", e)
            return {}

    def _classify(
        self, model_id: str, overrides: Mapping[str, ModelOverride]
    ) -> tuple[ModelTier, int]:
        tier = classify(
            model_id, overrides, self.config.free_models, self.config.heavy_models
        )
        limit = resolve_daily_limit(
            model_id,
            overrides,
            self.config.tier_limits,
            self.config.free_models,
            self.config.heavy_models,
        )
        return tier, limit

    async def check_quota(
        self, user_id: str, model_id: str, is_admin: bool = False
    ) -> QuotaStatus:
        """Check whether user can send one more request to the model today."""
        overrides = await self._overrides()
        tier, limit = self._classify(model_id, overrides)

        if is_admin:
            return QuotaStatus(
                allowed=True,
                remaining=constants.QUOTA_UNLIMITED,
                limit=constants.QUOTA_UNLIMITED,
                tier=tier,
            )
        if limit == 0:
            return QuotaStatus(
                allowed=True, remaining=constants.QUOTA_UNLIMITED, limit=0, tier=tier
            )

        try:
            used = await self._run(
                self.usage_store.get_count, user_id, model_id, self.today()
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Unable to read usage of %s, allowing request: %s", user_id, e)
            return QuotaStatus(allowed=True, remaining=limit, limit=limit, tier=tier)

        status = QuotaStatus(
            allowed=used < limit,
            remaining=max(0, limit - used),
            limit=limit,
            tier=tier,
        )
        if not status.allowed:
            metrics.quota_denials_total.labels(tier.value).inc()
            logger.info(
                "User %s has used %d of %d requests of model %s",
                user_id,
                used,
                limit,
                model_id,
            )
        return status

    async def increment_usage(self, user_id: str, model_id: str) -> None:
        """Add one request to today's counter, failures are only logged."""
        try:
            await self._run(self.usage_store.increment, user_id, model_id, self.today())
        except Exception as e:  # pylint: disable=broad-exception-caught
            metrics.usage_increment_failures_total.inc()
            logger.error(
                "Unable to record usage of model %s by %s: %s", model_id, user_id, e
            )

    def record_usage(self, user_id: str, model_id: str) -> None:
        """Increment usage in background task, the caller is never blocked.

        Must be called from a running event loop.
        """
        task = asyncio.create_task(self.increment_usage(user_id, model_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        """Return number of increments still running."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all increments started so far."""
        if self._pending:
            logger.info("Waiting for %d usage increment(s)", len(self._pending))
            await asyncio.gather(*self._pending)

    async def usage_summary(
        self, user_id: str, is_admin: bool = False
    ) -> list[ModelUsage]:
        """Return today's usage of every model the user used."""
        overrides = await self._overrides()
        try:
            counts = await self._run(
                self.usage_store.list_for_user, user_id, self.today()
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Unable to read usage summary of %s: %s", user_id, e)
            counts = {}

        summary = []
        for model_id, used in counts.items():
            tier, limit = self._classify(model_id, overrides)
            remaining = constants.QUOTA_UNLIMITED
            if is_admin:
                limit = constants.QUOTA_UNLIMITED
            elif limit != 0:
                remaining = max(0, limit - used)
            summary.append(
                ModelUsage(
                    model_id=model_id,
                    used=used,
                    limit=limit,
                    remaining=remaining,
                    tier=tier,
                )
            )
        return summary
