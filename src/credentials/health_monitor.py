"""Tracking of credential health."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

import constants
from credentials.credential_store import CredentialStore
from credentials.errors import CredentialNotFoundError, ExchangeError
from credentials.token_exchanger import TokenExchanger, token_sku
from log import get_logger, short_id
from models.database.credentials import Credential

logger = get_logger(__name__)

# called with credential ID and its new status
StatusListener = Callable[[str, str], None]

# error reported for a credential whose test could not be stored
STORAGE_ERROR = "storage"


@dataclass(frozen=True)
class CredentialTestResult:
    """Outcome of explicit credential test.

    Attributes:
        credential_id: ID of tested credential
        label: credential label
        valid: whether the exchange succeeded
        status: credential status after the test
        sku: subscription SKU reported by the upstream
        error: kind of exchange failure or storage, None on success
    """

    credential_id: str
    label: str
    valid: bool
    status: str
    sku: Optional[str] = None
    error: Optional[str] = None


class HealthMonitor:
    """Persist alive/dead status of credentials.

    The only automatic transition is alive -> dead on an unauthorized
    exchange. A dead credential comes back only through an explicit test.
    """

    def __init__(self, store: CredentialStore, exchanger: TokenExchanger) -> None:
        """Initialize health monitor."""
        self.store = store
        self.exchanger = exchanger
        self._listeners: list[StatusListener] = []

    def subscribe(self, listener: StatusListener) -> None:
        """Register callback invoked after every status change."""
        self._listeners.append(listener)

    def mark_alive(self, credential_id: str) -> None:
        """Mark credential alive."""
        self._set_status(credential_id, constants.CREDENTIAL_STATUS_ALIVE)

    def mark_dead(self, credential_id: str) -> None:
        """Mark credential dead, it will be skipped by rotation."""
        logger.warning("Marking credential %s dead", short_id(credential_id))
        self._set_status(credential_id, constants.CREDENTIAL_STATUS_DEAD)

    def _set_status(self, credential_id: str, status: str) -> None:
        self.store.set_status(credential_id, status, datetime.now(timezone.utc))
        self._notify(credential_id, status)

    def _notify(self, credential_id: str, status: str) -> None:
        for listener in self._listeners:
            listener(credential_id, status)

    async def enroll(self, label: str, secret: str) -> Credential:
        """Validate new credential and store it with the outcome as status.

        Only an unauthorized exchange stores the credential as dead.
        """
        status = constants.CREDENTIAL_STATUS_ALIVE
        try:
            await self.exchanger.exchange(secret)
        except ExchangeError as e:
            if e.is_unauthorized:
                status = constants.CREDENTIAL_STATUS_DEAD
            logger.warning("Validation of new credential %s failed: %s", label, e)

        credential = await asyncio.to_thread(self.store.add, label, secret, status)
        self._notify(credential.id, status)
        return credential

    async def test(self, credential_id: str) -> CredentialTestResult:
        """Validate credential and persist the outcome.

        The credential is exchanged and the issued token has to list the
        models, as a real client would. A network or malformed outcome says
        nothing about the credential, only the test time is updated then.

        Raises:
            CredentialNotFoundError: when the credential does not exist.
        """
        credential = await asyncio.to_thread(self.store.get, credential_id)
        if credential is None:
            raise CredentialNotFoundError(credential_id)

        try:
            exchanged = await self.exchanger.exchange(credential.secret)
            await self.exchanger.check_models(exchanged.token)
        except ExchangeError as e:
            if e.is_unauthorized:
                await asyncio.to_thread(self.mark_dead, credential_id)
                status = constants.CREDENTIAL_STATUS_DEAD
            else:
                logger.warning(
                    "Test of credential %s inconclusive: %s",
                    short_id(credential_id),
                    e,
                )
                status = await self._touch_tested(credential_id, credential.status)
            return CredentialTestResult(
                credential_id=credential_id,
                label=credential.label,
                valid=False,
                status=status,
                error=e.kind.value,
            )

        await asyncio.to_thread(self.mark_alive, credential_id)
        logger.info("Credential %s is alive", short_id(credential_id))
        return CredentialTestResult(
            credential_id=credential_id,
            label=credential.label,
            valid=True,
            status=constants.CREDENTIAL_STATUS_ALIVE,
            sku=token_sku(exchanged.token),
        )

    async def _touch_tested(self, credential_id: str, known_status: str) -> str:
        """Record the test time and return the status stored now.

        The status may have changed while the exchange was in flight, so it is
        read again instead of written back.
        """
        await asyncio.to_thread(
            self.store.touch_tested, credential_id, datetime.now(timezone.utc)
        )
        current = await asyncio.to_thread(self.store.get, credential_id)
        return known_status if current is None else current.status

    async def _test_isolated(
        self, credential: Credential
    ) -> Optional[CredentialTestResult]:
        """Test one credential of a batch, its failure does not fail the batch."""
        try:
            return await self.test(credential.id)
        except CredentialNotFoundError:
            logger.info("Credential %s deleted during test", short_id(credential.id))
            return None
        except SQLAlchemyError as e:
            logger.error(
                "Unable to store test of credential %s: %s", short_id(credential.id), e
            )
            return CredentialTestResult(
                credential_id=credential.id,
                label=credential.label,
                valid=False,
                status=credential.status,
                error=STORAGE_ERROR,
            )

    async def test_all(self) -> list[CredentialTestResult]:
        """Test all credentials concurrently.

        Credentials deleted meanwhile are left out, a storage failure is
        reported for the affected credential only.
        """
        credentials = await asyncio.to_thread(self.store.list_all)
        logger.info("Testing %d credential(s)", len(credentials))
        results = await asyncio.gather(
            *(self._test_isolated(credential) for credential in credentials)
        )
        return [result for result in results if result is not None]
