"""Long-lived credential models."""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, func

import constants
from models.database.base import Base


class Credential(Base):  # pylint: disable=too-few-public-methods
    """Model for storing OAuth credentials exchanged for inference tokens."""

    __tablename__ = "credentials"

    # The credential ID (UUID)
    id: Mapped[str] = mapped_column(primary_key=True)

    # Display name shown to administrators
    label: Mapped[str] = mapped_column()

    # The OAuth token itself, never returned by the REST API
    secret: Mapped[str] = mapped_column()

    status: Mapped[str] = mapped_column(
        default=constants.CREDENTIAL_STATUS_ALIVE, index=True
    )

    last_tested_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Number of inference tokens handed out, used for load balancing
    use_count: Mapped[int] = mapped_column(default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),  # pylint: disable=not-callable
    )

    def __repr__(self) -> str:
        """Return textual representation without the secret."""
        return (
            f"Credential(id={self.id!r}, label={self.label!r}, "
            f"status={self.status!r}, use_count={self.use_count!r})"
        )
