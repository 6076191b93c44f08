"""Per-model override models."""

from typing import Optional

from sqlalchemy.orm import Mapped, mapped_column

from models.database.base import Base


class ModelConfig(Base):  # pylint: disable=too-few-public-methods
    """Model for storing per-model tier and daily limit overrides."""

    __tablename__ = "model_config"

    # The model identifier as sent to the upstream API
    id: Mapped[str] = mapped_column(primary_key=True)

    # free, standard or heavy; NULL means the tier is derived from the model ID
    tier: Mapped[Optional[str]] = mapped_column(nullable=True)

    # NULL means derive from tier, 0 means unlimited
    daily_limit: Mapped[Optional[int]] = mapped_column(nullable=True)

    is_enabled: Mapped[bool] = mapped_column(default=True)
    is_default: Mapped[bool] = mapped_column(default=False)
    custom_label: Mapped[Optional[str]] = mapped_column(nullable=True)
    sort_order: Mapped[int] = mapped_column(default=0)
