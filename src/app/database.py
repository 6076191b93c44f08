"""SQLAlchemy engine and sessions for credentials and model overrides."""

import logging
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import URL, create_engine, text
from sqlalchemy.engine.base import Engine
from sqlalchemy.orm import Session, sessionmaker

from configuration import configuration
from log import get_logger
from models.config import (
    DatabaseConfiguration,
    PostgreSQLDatabaseConfiguration,
    SQLiteDatabaseConfiguration,
)
from models.database.base import Base

# imported for their side effect of registering tables in Base.metadata
from models.database import credentials as _credentials  # noqa: F401
from models.database import model_configs as _model_configs  # noqa: F401

logger = get_logger(__name__)

engine: Engine | None = None
session_local: sessionmaker | None = None


def get_engine() -> Engine:
    """Return the engine created by initialize_database()."""
    if engine is None:
        raise RuntimeError(
            "Database engine not initialized. Call initialize_database() first."
        )
    return engine


def get_session_factory() -> sessionmaker:
    """Return factory of sessions bound to the engine."""
    if session_local is None:
        raise RuntimeError(
            "Database session not initialized. Call initialize_database() first."
        )
    return session_local


def get_session() -> Session:
    """Open new session."""
    return get_session_factory()()


def create_tables() -> None:
    """Create credential and model configuration tables when missing."""
    Base.metadata.create_all(get_engine())


def _create_sqlite_engine(config: SQLiteDatabaseConfiguration, **kwargs: Any) -> Engine:
    """Create engine for SQLite file, its directory has to exist."""
    db_file = Path(config.db_path)
    if not db_file.parent.exists():
        raise FileNotFoundError(
            f"SQLite database directory does not exist: {config.db_path}"
        )

    try:
        # stores are called from worker threads
        return create_engine(
            f"sqlite:///{db_file}",
            connect_args={"check_same_thread": False},
            **kwargs,
        )
    except Exception as e:
        logger.exception("Unable to create SQLite engine for %s", db_file)
        raise RuntimeError(f"SQLite engine creation failed: {e}") from e


def _postgres_url(config: PostgreSQLDatabaseConfiguration) -> URL:
    """Build connection URL, the password is escaped by SQLAlchemy."""
    return URL.create(
        "postgresql+psycopg2",
        username=config.user,
        password=config.password.get_secret_value(),
        host=config.host,
        port=config.port,
        database=config.db,
        query={"sslmode": config.ssl_mode, "gssencmode": config.gss_encmode},
    )


def _ensure_schema(postgres_engine: Engine, schema: str) -> None:
    """Create the schema used for gateway tables."""
    try:
        with postgres_engine.connect() as connection:
            connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
            connection.commit()
    except Exception as e:
        logger.exception("Unable to create schema '%s'", schema)
        raise RuntimeError(f"Schema creation failed for '{schema}': {e}") from e
    logger.info("Using schema '%s'", schema)


def _create_postgres_engine(
    config: PostgreSQLDatabaseConfiguration, **kwargs: Any
) -> Engine:
    """Create engine for PostgreSQL, a non-public namespace is created on demand."""
    connect_args: dict[str, str] = {}
    schema = config.namespace if config.namespace not in (None, "public") else None
    if schema is not None:
        connect_args["options"] = f"-csearch_path={schema}"
    if config.ca_cert_path is not None:
        connect_args["sslrootcert"] = str(config.ca_cert_path)

    try:
        postgres_engine = create_engine(
            _postgres_url(config), connect_args=connect_args, **kwargs
        )
    except Exception as e:
        logger.exception("Unable to create PostgreSQL engine")
        raise RuntimeError(f"PostgreSQL engine creation failed: {e}") from e

    if schema is not None:
        _ensure_schema(postgres_engine, schema)
    return postgres_engine


def initialize_database(db_config: Optional[DatabaseConfiguration] = None) -> None:
    """Create the engine and session factory for configured database."""
    if db_config is None:
        db_config = configuration.database_configuration

    global engine, session_local  # pylint: disable=global-statement

    engine_kwargs: dict[str, Any] = {
        # SQL statements are logged only in debug mode
        "echo": logger.isEnabledFor(logging.DEBUG),
        "pool_pre_ping": True,
    }

    db = db_config.config
    if isinstance(db, SQLiteDatabaseConfiguration):
        logger.info("Using SQLite database %s", db.db_path)
        engine = _create_sqlite_engine(db, **engine_kwargs)
    else:
        logger.info("Using PostgreSQL database %s on %s:%d", db.db, db.host, db.port)
        engine = _create_postgres_engine(db, **engine_kwargs)

    session_local = sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )
