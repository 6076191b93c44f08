"""Storage of per-model overrides."""

from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from log import get_logger
from models.database.model_configs import ModelConfig
from quota.model_tier import ModelOverride, ModelTier

logger = get_logger(__name__)

# columns that can be changed through upsert
MODEL_CONFIG_FIELDS = (
    "tier",
    "daily_limit",
    "is_enabled",
    "is_default",
    "custom_label",
    "sort_order",
)


class ModelConfigStore:
    """Repository for the `model_config` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        """Create a new store that opens sessions using given factory."""
        self.session_factory = session_factory

    def list_models(self, enabled_only: bool = False) -> list[ModelConfig]:
        """Return model configurations ordered by sort order."""
        with self.session_factory() as session:
            query = session.query(ModelConfig)
            if enabled_only:
                query = query.filter(ModelConfig.is_enabled.is_(True))
            return query.order_by(ModelConfig.sort_order, ModelConfig.id).all()

    def get(self, model_id: str) -> Optional[ModelConfig]:
        """Return configuration of given model or None."""
        with self.session_factory() as session:
            return session.query(ModelConfig).filter_by(id=model_id).first()

    def get_overrides(self) -> dict[str, ModelOverride]:
        """Return tier and limit overrides keyed by model ID."""
        with self.session_factory() as session:
            rows = (
                session.query(ModelConfig)
                .filter(
                    (ModelConfig.tier.is_not(None))
                    | (ModelConfig.daily_limit.is_not(None))
                )
                .all()
            )
        return {
            row.id: ModelOverride(
                tier=ModelTier(row.tier) if row.tier is not None else None,
                daily_limit=row.daily_limit,
            )
            for row in rows
        }

    def upsert(self, model_id: str, changes: dict[str, Any]) -> ModelConfig:
        """Create or update model configuration.

        Only the columns present in `changes` are written. Making a model the
        default clears the flag on every other model in the same transaction.
        """
        unknown = set(changes) - set(MODEL_CONFIG_FIELDS)
        if unknown:
            raise ValueError(f"Unknown model configuration fields: {sorted(unknown)}")

        with self.session_factory() as session:
            model_config = session.query(ModelConfig).filter_by(id=model_id).first()
            if model_config is None:
                model_config = ModelConfig(id=model_id)
                session.add(model_config)
                logger.info("Creating configuration for model %s", model_id)

            for field, value in changes.items():
                setattr(model_config, field, value)

            if changes.get("is_default"):
                session.query(ModelConfig).filter(
                    ModelConfig.id != model_id, ModelConfig.is_default.is_(True)
                ).update({ModelConfig.is_default: False})

            session.commit()
            session.refresh(model_config)
        logger.info("Configuration for model %s updated: %s", model_id, sorted(changes))
        return model_config

    def delete(self, model_id: str) -> bool:
        """Delete model configuration, return True when it existed."""
        with self.session_factory() as session:
            model_config = session.query(ModelConfig).filter_by(id=model_id).first()
            if model_config is None:
                return False
            session.delete(model_config)
            session.commit()
        logger.info("Configuration for model %s deleted", model_id)
        return True
