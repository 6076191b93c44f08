"""Classification of models into quota tiers.

Every model falls into one of three tiers:

1. `free` models cost nothing upstream and are not limited (limit 0)
1. `heavy` models are billed with a premium multiplier and have the lowest
daily limit
1. `standard` is everything else

An administrator can override the tier and/or the daily limit of any model.
The functions in this module are pure, the override table is passed in
explicitly.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional

import constants


class ModelTier(str, Enum):
    """Quota tier of a model."""

    FREE = constants.MODEL_TIER_FREE
    STANDARD = constants.MODEL_TIER_STANDARD
    HEAVY = constants.MODEL_TIER_HEAVY


@dataclass(frozen=True)
class ModelOverride:
    """Administrator override of model tier and daily limit.

    Attributes:
        tier: explicit tier, None means the tier is derived from model ID
        daily_limit: None derives limit from tier, 0 means unlimited
    """

    tier: Optional[ModelTier] = None
    daily_limit: Optional[int] = None


def _matches(model_id: str, identifiers: Iterable[str]) -> bool:
    """Check whether any identifier is a case-insensitive substring of model ID."""
    model_id = model_id.lower()
    return any(identifier.lower() in model_id for identifier in identifiers)


def classify(
    model_id: str,
    overrides: Mapping[str, ModelOverride],
    free_models: Iterable[str] = constants.DEFAULT_FREE_MODELS,
    heavy_models: Iterable[str] = constants.DEFAULT_HEAVY_MODELS,
) -> ModelTier:
    """Return the tier of the model.

    Precedence: override tier, free identifiers, heavy identifiers, standard.
    """
    override = overrides.get(model_id)
    if override is not None and override.tier is not None:
        return override.tier
    if _matches(model_id, free_models):
        return ModelTier.FREE
    if _matches(model_id, heavy_models):
        return ModelTier.HEAVY
    return ModelTier.STANDARD


def resolve_daily_limit(
    model_id: str,
    overrides: Mapping[str, ModelOverride],
    tier_limits: Optional[Mapping[str, int]] = None,
    free_models: Iterable[str] = constants.DEFAULT_FREE_MODELS,
    heavy_models: Iterable[str] = constants.DEFAULT_HEAVY_MODELS,
) -> int:
    """Return daily request limit of the model, 0 means unlimited.

    An explicit daily limit wins over the tier, even when it is 0.
    """
    override = overrides.get(model_id)
    if override is not None and override.daily_limit is not None:
        return override.daily_limit

    if tier_limits is None:
        tier_limits = constants.DEFAULT_TIER_DAILY_LIMITS
    tier = classify(model_id, overrides, free_models, heavy_models)
    return tier_limits.get(tier.value, constants.DEFAULT_TIER_DAILY_LIMITS[tier.value])
