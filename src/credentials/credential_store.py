"""Abstract interface for credential storage."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from models.database.credentials import Credential


class CredentialStore(ABC):
    """Abstract class that is parent for all credential store implementations.

    Implementations must make `record_use` atomic: concurrent calls for the
    same credential must never lose an increment of `use_count`.
    """

    @abstractmethod
    def list_usable(self) -> list[Credential]:
        """Return credentials that are not dead ordered by use count."""

    @abstractmethod
    def list_all(self) -> list[Credential]:
        """Return all credentials ordered by creation time."""

    @abstractmethod
    def get(self, credential_id: str) -> Optional[Credential]:
        """Return credential with given ID or None if it does not exist."""

    @abstractmethod
    def add(self, label: str, secret: str, status: str) -> Credential:
        """Store new credential and return it."""

    @abstractmethod
    def delete(self, credential_id: str) -> bool:
        """Delete credential, return True when it existed."""

    @abstractmethod
    def set_status(
        self, credential_id: str, status: str, tested_at: datetime
    ) -> None:
        """Persist credential status together with time of the test."""

    @abstractmethod
    def touch_tested(self, credential_id: str, tested_at: datetime) -> None:
        """Update time of the test, the status is left as it is."""

    @abstractmethod
    def record_use(self, credential_id: str, used_at: datetime) -> None:
        """Increment use count and update time of last use."""
