# common/state_manager.py
# -*- coding: utf-8 -*-
"""
Manages the state file recording input fingerprints of run-once steps.

Steps such as "install every package in packages.list" have no single
executable to look for. They are considered present when the sha256 of
their input file matches the fingerprint recorded after their last
successful install, so editing the input makes the step run again.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

module_logger = logging.getLogger(__name__)

STATE_FILE_HEADER = "# dotfiles-bootstrap state: <step> <sha256>\n"


def file_fingerprint(path: Path) -> Optional[str]:
    """
    Return the sha256 hex digest of a file, or None if it cannot be read.
    """
    try:
        with open(path, "rb") as f:
            return hashlib.sha256(f.read()).hexdigest()
    except OSError:
        return None


class StateManager:
    """Reads and writes step fingerprints in a plain text state file."""

    def __init__(
        self, state_file: Path, logger: Optional[logging.Logger] = None
    ):
        self.state_file = Path(state_file)
        self.logger = logger or module_logger

    def load(self) -> Dict[str, str]:
        """
        Read all recorded fingerprints.

        A missing file yields an empty mapping; malformed lines are ignored.
        """
        entries: Dict[str, str] = {}
        try:
            content = self.state_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return entries
        except OSError as e:
            self.logger.warning(
                f"Could not read state file {self.state_file}: {e}"
            )
            return entries

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split()
            if len(parts) != 2:
                self.logger.debug(f"Ignoring malformed state line: {line!r}")
                continue
            entries[parts[0]] = parts[1]
        return entries

    def get(self, step_name: str) -> Optional[str]:
        return self.load().get(step_name)

    def matches(self, step_name: str, fingerprint: Optional[str]) -> bool:
        """True if a fingerprint is given and equals the recorded one."""
        return fingerprint is not None and self.get(step_name) == fingerprint

    def record(self, step_name: str, fingerprint: str) -> None:
        entries = self.load()
        entries[step_name] = fingerprint
        self._write(entries)
        self.logger.debug(f"Recorded fingerprint for step '{step_name}'.")

    def forget(self, step_name: str) -> None:
        entries = self.load()
        if entries.pop(step_name, None) is not None:
            self._write(entries)

    def clear(self) -> None:
        self._write({})

    def _write(self, entries: Dict[str, str]) -> None:
        # Readers see either the old file or the new one, never a partial write.
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=str(self.state_file.parent),
            prefix=".state_",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as temp_f:
                temp_f.write(STATE_FILE_HEADER)
                for name in sorted(entries):
                    temp_f.write(f"{name} {entries[name]}\n")
            os.replace(temp_path, self.state_file)
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
