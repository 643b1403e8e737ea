"""Source ledger: which source (URL or install token) each skill came from.

The ledger is one flat JSON object, ``{skill_id: source}``. Reads never
raise: a missing, unreadable or corrupt file is reported through
`LedgerSnapshot.state` and treated as empty. Writes are read-modify-write
under an exclusive advisory lock so concurrent installs don't drop each
other's entries.
"""

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional

from .log import get_logger

logger = get_logger(__name__)

try:
    import fcntl  # type: ignore

    _HAS_FCNTL = True
except ImportError:  # pragma: no cover - Windows/fallback path
    fcntl = None
    _HAS_FCNTL = False

_LEDGER_LOCKS: Dict[str, threading.Lock] = {}
_LEDGER_LOCKS_GUARD = threading.Lock()


class LedgerState(str, Enum):
    """Outcome of reading the ledger file."""

    LOADED = "loaded"
    MISSING = "missing"
    CORRUPT = "corrupt"
    UNREADABLE = "unreadable"


@dataclass
class LedgerSnapshot:
    entries: Dict[str, str] = field(default_factory=dict)
    state: LedgerState = LedgerState.MISSING

    @property
    def ok(self) -> bool:
        return self.state in (LedgerState.LOADED, LedgerState.MISSING)


class SourceLedger:
    """Persistent skill id -> source mapping backed by a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"SourceLedger({str(self.path)!r})"

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def load(self) -> LedgerSnapshot:
        """Read the whole ledger, classifying any failure."""
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return LedgerSnapshot(state=LedgerState.MISSING)
        except OSError as e:
            logger.warning("Could not read source ledger %s: %s", self.path, e)
            return LedgerSnapshot(state=LedgerState.UNREADABLE)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Source ledger %s is not valid JSON: %s", self.path, e)
            return LedgerSnapshot(state=LedgerState.CORRUPT)

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            logger.warning("Source ledger %s is not a string-to-string object", self.path)
            return LedgerSnapshot(state=LedgerState.CORRUPT)

        return LedgerSnapshot(entries=data, state=LedgerState.LOADED)

    def entries(self) -> Dict[str, str]:
        return self.load().entries

    def get_source(self, skill_id: str) -> Optional[str]:
        """Return the recorded source for `skill_id`, or None."""
        return self.load().entries.get(skill_id)

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def save_source(self, skill_id: str, source: str) -> bool:
        """Record `source` for `skill_id`, overwriting any previous value."""
        return self.save_sources([skill_id], source)

    def save_sources(self, skill_ids: Iterable[str], source: str) -> bool:
        """Record the same `source` for several skills in one update.

        Returns False if the ledger could not be written; the failure is
        logged, not raised.
        """
        skill_ids = list(skill_ids)
        if not skill_ids:
            return True
        try:
            with self._lock():
                entries = self.load().entries
                for skill_id in skill_ids:
                    entries[skill_id] = source
                self._write(entries)
        except OSError as e:
            logger.warning("Could not write source ledger %s: %s", self.path, e)
            return False
        return True

    def remove_source(self, skill_id: str) -> bool:
        """Forget `skill_id`. Returns True if an entry was removed."""
        try:
            with self._lock():
                entries = self.load().entries
                if skill_id not in entries:
                    return False
                del entries[skill_id]
                self._write(entries)
        except OSError as e:
            logger.warning("Could not write source ledger %s: %s", self.path, e)
            return False
        return True

    def _write(self, entries: Dict[str, str]) -> None:
        """Replace the ledger file atomically with `entries`."""
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=2, sort_keys=True)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    def _get_process_lock(self) -> threading.Lock:
        """Return a process-local lock for the ledger path."""
        key = str(self.path.resolve())
        with _LEDGER_LOCKS_GUARD:
            lock = _LEDGER_LOCKS.get(key)
            if lock is None:
                lock = threading.Lock()
                _LEDGER_LOCKS[key] = lock
            return lock

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Hold an exclusive lock for a read-modify-write cycle."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_process_lock():
            if _HAS_FCNTL:
                lock_path = self.path.with_suffix(self.path.suffix + ".lock")
                with open(lock_path, "a") as lock_file:
                    fcntl.flock(lock_file, fcntl.LOCK_EX)
                    try:
                        yield
                    finally:
                        fcntl.flock(lock_file, fcntl.LOCK_UN)
            else:  # pragma: no cover - fallback on platforms without fcntl
                yield
