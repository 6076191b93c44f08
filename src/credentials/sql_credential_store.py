"""Credential store backed by SQLAlchemy ORM."""

from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

import constants
from credentials.credential_store import CredentialStore
from log import get_logger, short_id
from models.database.credentials import Credential

logger = get_logger(__name__)


class SQLCredentialStore(CredentialStore):
    """Credential store that keeps credentials in the `credentials` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        """Create a new store that opens sessions using given factory."""
        self.session_factory = session_factory

    def list_usable(self) -> list[Credential]:
        """Return credentials that are not dead, least used first."""
        with self.session_factory() as session:
            return (
                session.query(Credential)
                .filter(Credential.status != constants.CREDENTIAL_STATUS_DEAD)
                .order_by(Credential.use_count.asc(), Credential.created_at.asc())
                .all()
            )

    def list_all(self) -> list[Credential]:
        """Return all credentials ordered by creation time."""
        with self.session_factory() as session:
            return session.query(Credential).order_by(Credential.created_at).all()

    def get(self, credential_id: str) -> Optional[Credential]:
        """Return credential with given ID or None if it does not exist."""
        with self.session_factory() as session:
            return session.query(Credential).filter_by(id=credential_id).first()

    def add(self, label: str, secret: str, status: str) -> Credential:
        """Store new credential and return it."""
        credential = Credential(
            id=str(uuid4()),
            label=label,
            secret=secret,
            status=status,
            last_tested_at=datetime.now(timezone.utc),
            use_count=0,
        )
        with self.session_factory() as session:
            session.add(credential)
            session.commit()
            session.refresh(credential)
        logger.info(
            "Stored credential %s (%s) with status %s",
            short_id(credential.id),
            label,
            status,
        )
        return credential

    def delete(self, credential_id: str) -> bool:
        """Delete credential, return True when it existed."""
        with self.session_factory() as session:
            credential = session.query(Credential).filter_by(id=credential_id).first()
            if credential is None:
                logger.info("Credential %s not found", short_id(credential_id))
                return False
            session.delete(credential)
            session.commit()
        logger.info("Deleted credential %s", short_id(credential_id))
        return True

    def set_status(
        self, credential_id: str, status: str, tested_at: datetime
    ) -> None:
        """Persist credential status together with time of the test."""
        with self.session_factory() as session:
            updated = (
                session.query(Credential)
                .filter_by(id=credential_id)
                .update(
                    {
                        Credential.status: status,
                        Credential.last_tested_at: tested_at,
                    }
                )
            )
            session.commit()
        if updated == 0:
            logger.warning(
                "Status of unknown credential %s not updated", short_id(credential_id)
            )

    def touch_tested(self, credential_id: str, tested_at: datetime) -> None:
        """Update time of the test in one UPDATE, status is not written."""
        with self.session_factory() as session:
            session.query(Credential).filter_by(id=credential_id).update(
                {Credential.last_tested_at: tested_at}
            )
            session.commit()

    def record_use(self, credential_id: str, used_at: datetime) -> None:
        """Increment use count in one UPDATE statement."""
        with self.session_factory() as session:
            session.query(Credential).filter_by(id=credential_id).update(
                {
                    Credential.use_count: Credential.use_count + 1,
                    Credential.last_used_at: used_at,
                }
            )
            session.commit()
