"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from models.database.base import Base

# imported to register tables in Base.metadata
from models.database import credentials as _credentials  # noqa: F401
from models.database import model_configs as _model_configs  # noqa: F401


@pytest.fixture(name="session_factory", scope="function")
def session_factory_fixture(tmp_path):
    """Provide session factory bound to fresh SQLite database.

    Stores are called from worker threads, a database file gives every
    thread its own connection.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'gateway.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture(name="minimal_config")
def minimal_config_fixture() -> dict[str, Any]:
    """Return minimal valid configuration of the service."""
    return {
        "name": "test gateway",
        "service": {
            "host": "localhost",
            "port": 8080,
            "workers": 1,
            "color_log": True,
            "access_log": True,
        },
        "authentication": {"module": "noop"},
        "authorization": {"admin_users": ["admin"]},
    }
