"""Bring the database schema to the latest Alembic revision at startup.

Databases that were created with ``Base.metadata.create_all`` (or by an older
deployment) carry tables but no ``alembic_version`` row. Those are matched
against :data:`SCHEMA_MARKERS` and stamped before upgrading, so Alembic never
tries to recreate tables that already exist.
"""

from __future__ import annotations

import errno
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import make_url
from sqlalchemy.engine.reflection import Inspector

from .database import SQLALCHEMY_DATABASE_URL

LOGGER = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent
LOCK_PATH = BACKEND_DIR / ".alembic-migration.lock"
LOCK_TIMEOUT_ENV = "ALEMBIC_MIGRATION_LOCK_TIMEOUT"
DEFAULT_LOCK_TIMEOUT = 30.0
LOCK_POLL_SECONDS = 0.25

if os.name == "posix":  # pragma: no cover - platform specific
    import fcntl
else:  # pragma: no cover - platform specific
    import msvcrt


@dataclass(frozen=True)
class SchemaMarker:
    """A revision together with a check that recognises its schema."""

    revision: str
    description: str
    matches: Callable[[Inspector], bool]


def _columns(inspector: Inspector, table_name: str) -> set[str]:
    if not inspector.has_table(table_name):
        return set()
    return {column["name"] for column in inspector.get_columns(table_name)}


def _indexes(inspector: Inspector, table_name: str) -> set[str]:
    if not inspector.has_table(table_name):
        return set()
    return {index["name"] for index in inspector.get_indexes(table_name)}


# Newest first; the first match wins.
SCHEMA_MARKERS: tuple[SchemaMarker, ...] = (
    SchemaMarker(
        "20261019_0003",
        "analytics snapshots",
        lambda inspector: (
            inspector.has_table("analytics")
            and "alerts_unread_entity_uidx" in _indexes(inspector, "alerts")
        ),
    ),
    SchemaMarker(
        "20261012_0002",
        "unread alert dedup index",
        lambda inspector: "alerts_unread_entity_uidx" in _indexes(inspector, "alerts"),
    ),
    SchemaMarker(
        "20261005_0001",
        "initial schema",
        lambda inspector: (
            inspector.has_table("clients")
            and inspector.has_table("notification_rules")
            and "order" in _columns(inspector, "subscription_services")
        ),
    ),
)


def detect_revision(inspector: Inspector) -> Optional[str]:
    for marker in SCHEMA_MARKERS:
        if marker.matches(inspector):
            LOGGER.debug("Schema matches %s (%s)", marker.revision, marker.description)
            return marker.revision
    return None


def _read_lock_timeout() -> float:
    raw = os.getenv(LOCK_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_LOCK_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        value = 0.0
    if value <= 0:
        LOGGER.warning(
            "Ignoring %s=%r; using %.1f seconds", LOCK_TIMEOUT_ENV, raw, DEFAULT_LOCK_TIMEOUT
        )
        return DEFAULT_LOCK_TIMEOUT
    return value


class MigrationLock:
    """Exclusive file lock so concurrent workers migrate one at a time."""

    def __init__(self, path: Path, timeout: float) -> None:
        self.path = path
        self.timeout = timeout
        self._handle = None

    @staticmethod
    def _held_elsewhere(error: OSError) -> bool:
        if isinstance(error, BlockingIOError):
            return True
        if error.errno in {errno.EACCES, errno.EAGAIN, errno.EBUSY}:
            return True
        # Windows lock and sharing violations.
        return getattr(error, "winerror", None) in {32, 33}

    def _try_lock(self) -> None:
        if os.name == "posix":  # pragma: no cover - platform specific
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        else:  # pragma: no cover - platform specific
            msvcrt.locking(self._handle.fileno(), msvcrt.LK_NBLCK, 1)

    def _unlock(self) -> None:
        if os.name == "posix":  # pragma: no cover - platform specific
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        else:  # pragma: no cover - platform specific
            msvcrt.locking(self._handle.fileno(), msvcrt.LK_UNLCK, 1)

    def __enter__(self) -> "MigrationLock":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.path.open("a+")
        deadline = time.monotonic() + self.timeout
        while True:
            try:
                self._try_lock()
                break
            except OSError as error:
                if not self._held_elsewhere(error):
                    self._handle.close()
                    raise
                if time.monotonic() >= deadline:
                    self._handle.close()
                    raise TimeoutError(
                        f"Timed out after {self.timeout:.1f}s waiting for {self.path}"
                    ) from error
                time.sleep(LOCK_POLL_SECONDS)
        LOGGER.debug("Acquired migration lock %s", self.path)
        return self

    def __exit__(self, *exc_info) -> None:
        try:
            self._unlock()
        except OSError:  # pragma: no cover - released when the handle closes
            LOGGER.debug("Could not release migration lock %s explicitly", self.path)
        finally:
            self._handle.close()
            self._handle = None


def build_alembic_config(database_url: str) -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    # ConfigParser interpolation treats "%" specially.
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def run_database_migrations(database_url: Optional[str] = None) -> None:
    """Upgrade the configured database to head, stamping untracked schemas first."""

    url = database_url or os.getenv("DATABASE_URL") or SQLALCHEMY_DATABASE_URL
    config = build_alembic_config(url)
    head = ScriptDirectory.from_config(config).get_current_head()
    LOGGER.info("Running database migrations at %s", make_url(url).render_as_string())

    with MigrationLock(LOCK_PATH, _read_lock_timeout()):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        engine = create_engine(url, connect_args=connect_args)
        try:
            inspector = inspect(engine)
            tracked = inspector.has_table("alembic_version")
            tables = [name for name in inspector.get_table_names() if name != "alembic_version"]
            if not tracked and tables:
                revision = detect_revision(inspector)
                if revision is None:
                    LOGGER.info(
                        "Found %s untracked tables that match no known revision; "
                        "running full upgrade",
                        len(tables),
                    )
                else:
                    LOGGER.info("Stamping untracked schema at revision %s", revision)
                    command.stamp(config, revision)
                    if revision == head:
                        return
        finally:
            engine.dispose()

        command.upgrade(config, "head")
