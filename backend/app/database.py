"""Engine, session factory and declarative base for the Opsboard backend."""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generator, Mapping, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

DEFAULT_SQLITE_PATH = Path(__file__).resolve().parent.parent / "opsboard.db"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUTHY


def _env_count(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings read from ``DATABASE_*`` environment variables.

    ``DATABASE_URL`` falls back to an SQLite file next to the package unless
    ``REQUIRE_POSTGRES`` is set, in which case SQLite is refused outright.
    Pool settings only apply to server databases.
    """

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    connect_timeout: int = 10

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "DatabaseSettings":
        env = os.environ if env is None else env
        require_postgres = _env_flag(env, "REQUIRE_POSTGRES")
        raw_url = env.get("DATABASE_URL")

        if not raw_url:
            if require_postgres:
                raise RuntimeError("REQUIRE_POSTGRES=1 but DATABASE_URL is not set")
            DEFAULT_SQLITE_PATH.parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{DEFAULT_SQLITE_PATH.as_posix()}"
        else:
            parsed = make_url(raw_url)
            if parsed.drivername.startswith("sqlite"):
                if require_postgres:
                    raise RuntimeError("REQUIRE_POSTGRES=1 does not allow an SQLite DATABASE_URL")
                if parsed.database not in (None, "", ":memory:"):
                    Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
            url = parsed.render_as_string(hide_password=False)

        return cls(
            url=url,
            pool_size=_env_count(env, "DATABASE_POOL_SIZE", cls.pool_size),
            max_overflow=_env_count(env, "DATABASE_MAX_OVERFLOW", cls.max_overflow),
            pool_timeout=_env_count(env, "DATABASE_POOL_TIMEOUT", cls.pool_timeout),
            pool_recycle=_env_count(env, "DATABASE_POOL_RECYCLE", cls.pool_recycle),
            connect_timeout=_env_count(env, "DATABASE_CONNECT_TIMEOUT", cls.connect_timeout),
        )

    def engine_options(self) -> Dict[str, Any]:
        if self.is_sqlite:
            # The scheduler thread and request threads share connections.
            return {"connect_args": {"check_same_thread": False}}
        return {
            "pool_pre_ping": True,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
            "pool_recycle": self.pool_recycle,
            "connect_args": {"connect_timeout": self.connect_timeout},
        }


def create_database_engine(settings: DatabaseSettings) -> Engine:
    return create_engine(settings.url, **settings.engine_options())


settings = DatabaseSettings.from_env()
SQLALCHEMY_DATABASE_URL = settings.url

engine = create_database_engine(settings)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """Commit on success and roll back on error, for work outside requests."""
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
