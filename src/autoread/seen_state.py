"""
Per-session "already surfaced" state shared between hook processes.

Every hook invocation is a separate, short-lived process, so the record of
which entries a session has already been shown lives on disk:

    <state_dir>/seen-<session>.json   JSON array of path strings
    <state_dir>/seen-<session>.lock   JSON {"pid", "token", "timestamp"}

Reads need no lock and treat a missing or corrupt state file as empty.
Updates are read-modify-write cycles under the session lock, and the state
file is always replaced atomically (temp file + os.replace).

Lock protocol:
- A lock older than ``stale_after`` seconds, held by a dead pid, or with
  unparseable content is stale and may be removed by anyone.
- A lock is created by writing the record to a unique temp file and moving it
  into place. The move is a hard link, which fails if a lock already exists;
  where hard links are unsupported it degrades to a rename.
- After the move the lock is re-read; only a record carrying our own token
  counts as held.
- Release deletes the lock only if it still carries our token.
"""

import json
import logging
import os
import tempfile
import time
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

from autoread.config import LockSettings, get_lock_settings, get_state_dir
from autoread.errors import LockTimeoutError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def is_process_alive(pid: int) -> bool:
    """
    Check whether a process id refers to a running process.

    Uses the signal-0 check on POSIX. On Windows there is no equivalent
    check via os.kill, so every pid is reported alive and only the age
    threshold makes a lock stale.
    """
    if pid <= 0:
        return False
    if os.name == "nt":
        return True
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by someone else
        return True
    except (OverflowError, OSError):
        return False
    return True


@dataclass(frozen=True)
class LockRecord:
    """Content of a lock file."""

    pid: int
    token: str
    timestamp: float

    @classmethod
    def from_json(cls, raw: str) -> Optional["LockRecord"]:
        """Parse lock file content; None when it is malformed."""
        try:
            data = json.loads(raw)
            return cls(
                pid=int(data["pid"]),
                token=str(data["token"]),
                timestamp=float(data["timestamp"]),
            )
        except (ValueError, TypeError, KeyError):
            return None

    def to_json(self) -> str:
        return json.dumps(asdict(self))


class FileLock:
    """Advisory cross-process lock backed by a single file."""

    def __init__(self, path: Path, settings: Optional[LockSettings] = None):
        self.path = Path(path)
        self.settings = settings or LockSettings()
        self.token: Optional[str] = None

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    @property
    def held(self) -> bool:
        """True while this instance believes it owns the lock."""
        return self.token is not None

    def acquire(self, timeout: Optional[float] = None) -> None:
        """
        Acquire the lock, waiting up to the configured timeout.

        Args:
            timeout: Seconds to wait instead of the configured timeout

        Raises:
            LockTimeoutError: If the lock could not be acquired in time
        """
        if timeout is None:
            timeout = self.settings.timeout
        token = uuid.uuid4().hex
        deadline = time.monotonic() + timeout

        while True:
            self._clear_if_stale()

            if not self.path.exists() and self._try_create(token):
                self.token = token
                logger.debug(f"Acquired lock {self.path}")
                return

            if time.monotonic() >= deadline:
                raise LockTimeoutError(self.path, timeout)
            time.sleep(self.settings.retry_interval)

    def release(self) -> None:
        """Delete the lock file if we still own it."""
        if self.token is None:
            return
        try:
            if self.is_owned():
                self.path.unlink()
                logger.debug(f"Released lock {self.path}")
            else:
                logger.warning(
                    f"Lock {self.path} was reclaimed by another process before release"
                )
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to release lock {self.path}: {e}")
        finally:
            self.token = None

    def is_owned(self) -> bool:
        """Re-read the lock file and confirm it still carries our token."""
        if self.token is None:
            return False
        try:
            record = self.read_record()
        except OSError:
            return False
        return (
            record is not None
            and record.token == self.token
            and record.pid == os.getpid()
        )

    def read_record(self) -> Optional[LockRecord]:
        """
        Read the current lock record.

        Returns:
            The record, or None if the file is malformed

        Raises:
            FileNotFoundError: If no lock file exists
        """
        return LockRecord.from_json(self.path.read_text(encoding="utf-8"))

    def is_stale(self, record: Optional[LockRecord]) -> bool:
        if record is None:
            return True
        if time.time() - record.timestamp > self.settings.stale_after:
            return True
        return not is_process_alive(record.pid)

    def _clear_if_stale(self) -> None:
        try:
            record = self.read_record()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.debug(f"Cannot read lock {self.path}: {e}")
            return

        if not self.is_stale(record):
            return

        # Another process may have reclaimed it since we looked; only remove
        # the same record we judged stale.
        try:
            if self.read_record() != record:
                return
            self.path.unlink()
            if record is None:
                logger.debug(f"Removed malformed lock {self.path}")
            else:
                logger.info(
                    f"Removed stale lock {self.path} "
                    f"(pid {record.pid}, age {time.time() - record.timestamp:.1f}s)"
                )
        except OSError:
            # Racing deleter got there first
            pass

    def _try_create(self, token: str) -> bool:
        record = LockRecord(pid=os.getpid(), token=token, timestamp=time.time())
        temp_path = self.path.with_name(f"{self.path.name}.{os.getpid()}.{token}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(record.to_json(), encoding="utf-8")
            try:
                os.link(temp_path, self.path)
            except FileExistsError:
                return False
            except OSError:
                # No hard links on this filesystem
                os.replace(temp_path, self.path)

            confirmed = self.read_record()
            return confirmed is not None and confirmed.token == token
        except OSError as e:
            logger.debug(f"Lock attempt on {self.path} failed: {e}")
            return False
        finally:
            try:
                temp_path.unlink()
            except OSError:
                pass


def session_filename(session_id: str) -> str:
    """
    Map an opaque session id to a filesystem-safe name.

    Ids made of letters, digits and "._-~" are used as is; any other
    character is percent-encoded (including "%" itself), so distinct ids
    never share a state file.

    Raises:
        ValueError: If session_id is empty
    """
    if not session_id:
        raise ValueError("session_id must be a non-empty string")
    return quote(session_id, safe="")


class SeenStateStore:
    """Durable per-session record of surfaced paths."""

    def __init__(
        self,
        state_dir: Optional[Path] = None,
        lock_settings: Optional[LockSettings] = None,
    ):
        """
        Args:
            state_dir: Directory holding state and lock files
                (default: <tempdir>/autoread-plugin)
            lock_settings: Lock timing (default: LockSettings())
        """
        self.state_dir = Path(state_dir) if state_dir else get_state_dir({})
        self.lock_settings = lock_settings or LockSettings()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SeenStateStore":
        return cls(
            state_dir=get_state_dir(config),
            lock_settings=get_lock_settings(config),
        )

    def seen_file(self, session_id: str) -> Path:
        return self.state_dir / f"seen-{session_filename(session_id)}.json"

    def lock_file(self, session_id: str) -> Path:
        return self.state_dir / f"seen-{session_filename(session_id)}.lock"

    def seen_paths(self, session_id: str) -> set[str]:
        """All paths surfaced so far in the session (empty if none)."""
        return set(self._load(session_id))

    def is_seen(self, session_id: str, path: PathLike) -> bool:
        """True if path has already been surfaced in the session."""
        return os.fspath(path) in self.seen_paths(session_id)

    def mark_seen(self, session_id: str, path: PathLike) -> bool:
        """
        Record path as surfaced for the session.

        The check and the update happen under the session lock, so among any
        number of concurrent callers exactly one gets True for a given path.

        Returns:
            True if this call recorded the path, False if it was already there

        Raises:
            LockTimeoutError: If the session lock could not be acquired
                within the configured timeout, counted across retries
        """
        key = os.fspath(path)
        lock_path = self.lock_file(session_id)
        timeout = self.lock_settings.timeout
        deadline = time.monotonic() + timeout

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise LockTimeoutError(lock_path, timeout)

            lock = FileLock(lock_path, self.lock_settings)
            lock.acquire(timeout=remaining)
            try:
                paths = self._load(session_id)
                if key in paths:
                    return False
                paths.append(key)
                if lock.is_owned():
                    self._write(session_id, paths)
                    return True
            finally:
                lock.release()
            logger.warning(
                f"Lost lock for session {session_id} before writing; retrying"
            )

    def _load(self, session_id: str) -> list[str]:
        seen_file = self.seen_file(session_id)
        try:
            raw = seen_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Cannot read seen state {seen_file} (treating as empty): {e}")
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt seen state {seen_file} (treating as empty): {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Unexpected seen state format in {seen_file} (treating as empty)")
            return []

        return list(dict.fromkeys(item for item in data if isinstance(item, str)))

    def _write(self, session_id: str, paths: list[str]) -> None:
        seen_file = self.seen_file(session_id)
        seen_file.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            dir=str(seen_file.parent),
            prefix=f"{seen_file.name}.",
            suffix=".tmp",
            encoding="utf-8",
        ) as tmp:
            json.dump(paths, tmp)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_name = tmp.name
        try:
            os.replace(tmp_name, seen_file)
        except OSError:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
