"""
Ledger of PHP-FPM units disabled by this tool.

A unit is listed iff this tool disabled it and has not re-enabled it since.
The on-disk format is one unit name per line with no ordering guarantee;
ordering and de-duplication happen when the file is read.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

from .errors import PersistenceFailure
from .inventory import is_php_fpm_unit, version_sorted

STATE_DIR_MODE = 0o700
STATE_FILE_MODE = 0o600


class Ledger(ABC):
    """Storage interface used by the lifecycle executor and the flows."""

    @abstractmethod
    def initialize(self) -> None:
        """Create the backing storage if needed. Idempotent."""

    @abstractmethod
    def list(self) -> List[str]:
        """Recorded unit names, de-duplicated and version-sorted."""

    @abstractmethod
    def record(self, name: str) -> None:
        """Add ``name`` unless already present."""

    @abstractmethod
    def remove(self, name: str) -> None:
        """Drop every occurrence of ``name``; no-op if absent."""


class FileLedger(Ledger):
    """
    Plain-text ledger protected by owner-only permissions.

    Removal writes a filtered copy next to the ledger and renames it into
    place, so a crash mid-write never leaves a truncated file. There is no
    locking: concurrent runs against the same file are unsupported.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def initialize(self) -> None:
        """
        Create the ledger file with mode 0600.

        A state directory created here gets mode 0700; an existing one keeps
        its permissions.
        """
        try:
            if not self.path.parent.exists():
                self.path.parent.mkdir(mode=STATE_DIR_MODE, parents=True)
                os.chmod(self.path.parent, STATE_DIR_MODE)
            self.path.touch(mode=STATE_FILE_MODE, exist_ok=True)
            os.chmod(self.path, STATE_FILE_MODE)
        except OSError as e:
            raise PersistenceFailure(f"Cannot prepare ledger {self.path}: {e}") from e

    def _read_lines(self) -> List[str]:
        try:
            if not self.path.exists():
                return []
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceFailure(f"Cannot read ledger {self.path}: {e}") from e
        return [line.strip() for line in text.splitlines() if line.strip()]

    def list(self) -> List[str]:
        return version_sorted([n for n in self._read_lines() if is_php_fpm_unit(n)])

    def record(self, name: str) -> None:
        self.initialize()
        if name in self._read_lines():
            return
        try:
            with self.path.open("r+", encoding="utf-8") as fh:
                content = fh.read()
                if content and not content.endswith("\n"):
                    fh.write("\n")
                fh.write(f"{name}\n")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceFailure(f"Cannot record {name} in {self.path}: {e}") from e

    def remove(self, name: str) -> None:
        self.initialize()
        lines = self._read_lines()
        kept = [line for line in lines if line != name]
        if len(kept) == len(lines):
            return

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write("".join(f"{line}\n" for line in kept))
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_path, STATE_FILE_MODE)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise PersistenceFailure(f"Cannot remove {name} from {self.path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
