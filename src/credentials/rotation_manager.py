"""Round-robin rotation over the credential pool."""

import asyncio
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

import constants
import metrics
from credentials.credential_store import CredentialStore
from credentials.errors import (
    AllCredentialsDeadError,
    ExchangeError,
    NoCredentialsConfiguredError,
)
from credentials.health_monitor import HealthMonitor
from credentials.token_cache import InferenceToken, TokenCache
from credentials.token_exchanger import TokenExchanger
from log import get_logger, short_id
from models.database.credentials import Credential

logger = get_logger(__name__)


class RotationManager:  # pylint: disable=too-many-instance-attributes
    """Produce inference tokens from the pool of alive credentials.

    One instance lives for the whole process. It owns the pool snapshot,
    the round-robin cursor, the token cache and the table of exchanges in
    flight.

    Each call starts one position further in the pool and walks all
    credentials from there, so a call tries every credential at most once.
    A credential rejected by the upstream is marked dead, transient failures
    only move the call on to the next credential.
    """

    def __init__(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        store: CredentialStore,
        exchanger: TokenExchanger,
        health_monitor: HealthMonitor,
        cache: TokenCache,
        pool_refresh_interval: float = constants.DEFAULT_POOL_REFRESH_INTERVAL,
        fallback_secret: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize rotation manager and subscribe to status changes."""
        self.store = store
        self.exchanger = exchanger
        self.health_monitor = health_monitor
        self.cache = cache
        self.pool_refresh_interval = pool_refresh_interval
        self.fallback_secret = fallback_secret
        self.clock = clock

        self._pool: list[Credential] = []
        self._pool_loaded_at: Optional[float] = None
        self._cursor = 0
        self._lock = asyncio.Lock()

        self._inflight: dict[str, asyncio.Task[InferenceToken]] = {}
        self._inflight_lock = asyncio.Lock()

        health_monitor.subscribe(self._on_status_change)

    def invalidate_pool(self) -> None:
        """Force reload of the pool on the next call."""
        self._pool_loaded_at = None

    def forget(self, credential_id: str) -> None:
        """Drop everything known about deleted credential."""
        self.cache.invalidate(credential_id)
        self.invalidate_pool()

    def _on_status_change(self, credential_id: str, status: str) -> None:
        if status == constants.CREDENTIAL_STATUS_DEAD:
            self.cache.invalidate(credential_id)
        self.invalidate_pool()

    def _pool_expired(self) -> bool:
        return (
            self._pool_loaded_at is None
            or self.clock() - self._pool_loaded_at >= self.pool_refresh_interval
        )

    async def _reload_pool(self) -> None:
        """Load usable credentials, the previous snapshot survives a failed load."""
        try:
            pool = await asyncio.to_thread(self.store.list_usable)
        except SQLAlchemyError:
            # retried on the next call, an empty snapshot means the fallback
            logger.exception(
                "Unable to load credential pool, keeping %d known credential(s)",
                len(self._pool),
            )
            return
        self._pool = pool
        self._pool_loaded_at = self.clock()
        logger.debug("Loaded pool of %d credential(s)", len(self._pool))

    async def _next_candidates(self) -> list[Credential]:
        """Return whole pool rotated so it starts at the cursor."""
        async with self._lock:
            if self._pool_expired():
                await self._reload_pool()
            if not self._pool:
                return []
            start = self._cursor % len(self._pool)
            self._cursor = (start + 1) % len(self._pool)
            return self._pool[start:] + self._pool[:start]

    async def acquire_token(self) -> InferenceToken:
        """Return inference token from the next usable credential.

        Raises:
            AllCredentialsDeadError: no credential produced a token.
            NoCredentialsConfiguredError: the pool is empty and there is no
                fallback credential.
        """
        candidates = await self._next_candidates()
        if not candidates:
            return await self._acquire_fallback_token()

        for credential in candidates:
            token = self.cache.get(credential.id)
            if token is not None:
                metrics.token_cache_hits_total.inc()
            else:
                try:
                    token = await self._exchange(credential.id, credential.secret)
                except ExchangeError as e:
                    await self._handle_failure(credential, e)
                    continue
            await self._record_use(credential.id)
            return token

        metrics.token_acquire_failures_total.inc()
        logger.error("None of %d credential(s) produced a token", len(candidates))
        raise AllCredentialsDeadError(len(candidates))

    async def _handle_failure(self, credential: Credential, error: ExchangeError) -> None:
        if not error.is_unauthorized:
            logger.warning(
                "Skipping credential %s: %s", short_id(credential.id), error
            )
            return
        logger.warning(
            "Credential %s (%s) was rejected upstream",
            short_id(credential.id),
            credential.label,
        )
        self.cache.invalidate(credential.id)
        try:
            await asyncio.to_thread(self.health_monitor.mark_dead, credential.id)
        except SQLAlchemyError:
            # the credential is still skipped for the rest of this call
            logger.exception(
                "Unable to mark credential %s dead", short_id(credential.id)
            )

    async def _acquire_fallback_token(self) -> InferenceToken:
        """Exchange the operator configured credential."""
        if self.fallback_secret is None:
            metrics.token_acquire_failures_total.inc()
            raise NoCredentialsConfiguredError(
                "No credentials enrolled and no fallback credential configured"
            )

        token = self.cache.get(constants.FALLBACK_CREDENTIAL_ID)
        if token is not None:
            metrics.token_cache_hits_total.inc()
            return token

        logger.info("Credential pool is empty, using fallback credential")
        try:
            return await self._exchange(
                constants.FALLBACK_CREDENTIAL_ID, self.fallback_secret
            )
        except ExchangeError as e:
            metrics.token_acquire_failures_total.inc()
            logger.error("Fallback credential failed: %s", e)
            raise AllCredentialsDeadError(1) from e

    async def _exchange(self, credential_id: str, secret: str) -> InferenceToken:
        """Exchange secret, concurrent misses for one credential share the call."""
        async with self._inflight_lock:
            task = self._inflight.get(credential_id)
            if task is None:
                task = asyncio.create_task(
                    self._exchange_and_cache(credential_id, secret)
                )
                self._inflight[credential_id] = task
                task.add_done_callback(
                    lambda _task: self._inflight.pop(credential_id, None)
                )
        # one cancelled waiter must not cancel the exchange for the others
        return await asyncio.shield(task)

    async def _exchange_and_cache(
        self, credential_id: str, secret: str
    ) -> InferenceToken:
        exchanged = await self.exchanger.exchange(secret)
        token = InferenceToken(
            value=exchanged.token,
            expires_at=exchanged.expires_at,
            source_credential_id=credential_id,
        )
        self.cache.put(token)
        logger.debug(
            "New inference token for credential %s expires at %d",
            short_id(credential_id),
            token.expires_at,
        )
        return token

    async def _record_use(self, credential_id: str) -> None:
        try:
            await asyncio.to_thread(
                self.store.record_use, credential_id, datetime.now(timezone.utc)
            )
        except SQLAlchemyError:
            logger.exception(
                "Unable to record use of credential %s", short_id(credential_id)
            )
