"""Unit tests for QuotaConfiguration model."""

import pytest
from pydantic import ValidationError

import constants
from models.config import (
    PostgreSQLDatabaseConfiguration,
    QuotaConfiguration,
    SQLiteDatabaseConfiguration,
)


def test_quota_defaults() -> None:
    """Test default quota configuration."""
    cfg = QuotaConfiguration()
    assert cfg.day_timezone == "UTC"
    assert cfg.tier_limits == {"free": 0, "standard": 15, "heavy": 5}
    assert cfg.free_models == list(constants.DEFAULT_FREE_MODELS)
    assert cfg.heavy_models == list(constants.DEFAULT_HEAVY_MODELS)
    assert cfg.sqlite is None
    assert cfg.postgres is None


def test_quota_partial_tier_limits() -> None:
    """Test that tiers missing in configuration keep their defaults."""
    cfg = QuotaConfiguration(tier_limits={"heavy": 2})
    assert cfg.tier_limits == {"free": 0, "standard": 15, "heavy": 2}


def test_quota_unknown_tier() -> None:
    """Test that unknown tier is rejected."""
    with pytest.raises(ValidationError):
        QuotaConfiguration(tier_limits={"premium": 2})


def test_quota_negative_limit() -> None:
    """Test that negative limit is rejected."""
    with pytest.raises(ValidationError):
        QuotaConfiguration(tier_limits={"heavy": -1})


def test_quota_unknown_timezone() -> None:
    """Test timezone validation."""
    with pytest.raises(ValidationError, match="Unknown timezone"):
        QuotaConfiguration(day_timezone="Mars/Olympus_Mons")


def test_quota_single_storage() -> None:
    """Test that only one usage storage can be configured."""
    with pytest.raises(ValidationError, match="Only one quota storage"):
        QuotaConfiguration(
            sqlite=SQLiteDatabaseConfiguration(db_path="/tmp/usage.db"),
            postgres=PostgreSQLDatabaseConfiguration(
                db="gateway", user="gw", password="secret"
            ),
        )
