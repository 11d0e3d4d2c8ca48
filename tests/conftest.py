"""Shared pytest fixtures for autoread tests.

Every test runs with HOME pointed at a temporary directory and the AUTOREAD_*
environment variables cleared, so neither the developer's global pattern file
nor their runtime config can leak into results.
"""

import json
import logging
import os
import time
from pathlib import Path

import pytest

from autoread.config import LockSettings
from autoread.patterns import PatternResolver
from autoread.seen_state import SeenStateStore

# =============================================================================
# Environment Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temp dir and clear autoread environment overrides."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in ("AUTOREAD_CONFIG_PATH", "AUTOREAD_STATE_DIR", "AUTOREAD_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by configure_logging() during a test."""
    package_logger = logging.getLogger("autoread")
    original_level = package_logger.level
    original_handlers = list(package_logger.handlers)
    yield
    for handler in list(package_logger.handlers):
        if handler not in original_handlers:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(original_level)


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def home_dir(isolated_env: Path) -> Path:
    """The temporary home directory."""
    return isolated_env


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create a temporary project directory with a nested sub directory.

    Layout:
        proj/
            sub/
                deeper/
    """
    proj = tmp_path / "proj"
    (proj / "sub" / "deeper").mkdir(parents=True)
    return proj.resolve()


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Directory for seen-state and lock files (not created up front)."""
    return tmp_path / "state"


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def resolver(home_dir: Path) -> PatternResolver:
    return PatternResolver(home=home_dir)


@pytest.fixture
def fast_lock_settings() -> LockSettings:
    """Short timeout so contention tests fail fast instead of hanging."""
    return LockSettings(timeout=0.3, retry_interval=0.005, stale_after=30.0)


@pytest.fixture
def store(state_dir: Path) -> SeenStateStore:
    return SeenStateStore(state_dir=state_dir)


@pytest.fixture
def write_lock():
    """Write a raw lock record, simulating another holder."""

    def _write(lock_path: Path, pid: int, token: str = "other", age: float = 0.0) -> Path:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock_path.write_text(
            json.dumps({"pid": pid, "token": token, "timestamp": time.time() - age})
        )
        return lock_path

    return _write


@pytest.fixture
def dead_pid() -> int:
    """A pid far above any real pid_max, so no such process exists."""
    return 999_999_999


@pytest.fixture
def live_pid() -> int:
    """A pid that is certainly alive: this test process."""
    return os.getpid()
