"""Bring the rate tables up to the latest Alembic revision."""

from __future__ import annotations

import errno
import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine.reflection import Inspector

from .database import SQLALCHEMY_DATABASE_URL, build_engine_kwargs

LOGGER = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
LOCK_PATH = BASE_DIR / ".alembic-migration.lock"
LOCK_POLL_INTERVAL = 0.25
LOCK_TIMEOUT_ENV = "ALEMBIC_MIGRATION_LOCK_TIMEOUT"
DEFAULT_LOCK_TIMEOUT = 30.0

if os.name == "posix":  # pragma: no cover - platform specific
    import fcntl
else:  # pragma: no cover - platform specific
    import msvcrt

# Newest first: the first matching check names the revision an unversioned schema is at.
KNOWN_SCHEMAS: Sequence[tuple[str, Callable[[Inspector], bool]]] = (
    ("20251019_0001", lambda inspector: inspector.has_table("bungalow_rates")),
)

# EACCES/EAGAIN on POSIX; ERROR_SHARING_VIOLATION and ERROR_LOCK_VIOLATION on Windows.
_BUSY_ERRNOS = {errno.EACCES, errno.EAGAIN, errno.EBUSY}
_BUSY_WINERRORS = {32, 33}


def _lock_timeout() -> float:
    raw = os.getenv(LOCK_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_LOCK_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        timeout = 0.0
    if timeout <= 0:
        LOGGER.warning(
            "Ignoring %s=%s; waiting %.1f seconds for the migration lock",
            LOCK_TIMEOUT_ENV,
            raw,
            DEFAULT_LOCK_TIMEOUT,
        )
        return DEFAULT_LOCK_TIMEOUT
    return timeout


def _try_lock(handle) -> bool:
    try:
        if os.name == "posix":  # pragma: no cover - platform specific
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        else:  # pragma: no cover - platform specific
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
    except BlockingIOError:
        return False
    except OSError as error:
        if error.errno in _BUSY_ERRNOS or getattr(error, "winerror", None) in _BUSY_WINERRORS:
            return False
        raise
    return True


def _unlock(handle) -> None:
    try:
        if os.name == "posix":  # pragma: no cover - platform specific
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        else:  # pragma: no cover - platform specific
            msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    except OSError:  # pragma: no cover - closing the handle releases it anyway
        LOGGER.debug("Could not release the migration lock", exc_info=True)


@contextmanager
def migration_lock(path: Path = LOCK_PATH, *, timeout: Optional[float] = None) -> Iterator[None]:
    """Hold an exclusive file lock so only one process migrates at a time."""

    timeout = _lock_timeout() if timeout is None else timeout
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a+") as handle:
        deadline = time.monotonic() + timeout
        while not _try_lock(handle):
            if time.monotonic() >= deadline:
                raise TimeoutError(f"Timed out after {timeout:.1f}s waiting for {path}")
            time.sleep(LOCK_POLL_INTERVAL)
        LOGGER.debug("Holding migration lock %s", path)
        try:
            yield
        finally:
            _unlock(handle)


def build_alembic_config(database_url: str | None = None) -> Config:
    """Return the Alembic configuration shipped with the package."""

    config = Config(str(BASE_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BASE_DIR / "alembic"))
    url = database_url or os.getenv("DATABASE_URL") or SQLALCHEMY_DATABASE_URL
    # Config values go through ConfigParser interpolation.
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def detect_schema_revision(inspector: Inspector) -> str | None:
    """Name the revision an unversioned database already matches, if any."""

    for revision, matches in KNOWN_SCHEMAS:
        if matches(inspector):
            return revision
    return None


def run_database_migrations(database_url: str | None = None) -> None:
    """Upgrade the database to the latest revision.

    A database whose tables predate Alembic bookkeeping is stamped with the
    revision it matches first, so its existing tables are not created twice.
    """

    config = build_alembic_config(database_url)
    url = config.get_main_option("sqlalchemy.url")
    head = ScriptDirectory.from_config(config).get_current_head()
    LOGGER.info("Migrating %s to revision %s", url, head)

    with migration_lock():
        engine = create_engine(url, **build_engine_kwargs(url))
        try:
            inspector = inspect(engine)
            versioned = inspector.has_table("alembic_version")
            detected = None if versioned else detect_schema_revision(inspector)
        finally:
            engine.dispose()

        if detected is not None:
            LOGGER.info("Existing tables match revision %s; stamping it", detected)
            command.stamp(config, detected)
            if detected == head:
                LOGGER.info("Schema already at head; nothing to upgrade")
                return
        command.upgrade(config, "head")
