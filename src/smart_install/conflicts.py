"""Conflict scanning - find earlier installs that look like the one being installed.

Matching is a case-insensitive substring test on names, so false positives
are expected. Results are always shown to the operator, who picks one of
replace / install anyway / abort; nothing is deleted without that choice.
"""

import logging
import shutil
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .config import InstallConfig
from .layout import walk_limited

logger = logging.getLogger(__name__)

LOCATION_SCAN_DEPTH = 2


class ConflictResolution(str, Enum):
    """Operator's answer to a conflict."""

    REPLACE = "replace"
    INSTALL_ANYWAY = "anyway"
    ABORT = "abort"


RESOLUTION_LABELS = [
    (ConflictResolution.REPLACE.value, "Remove existing and install new version"),
    (ConflictResolution.INSTALL_ANYWAY.value, "Install anyway (keep both)"),
    (ConflictResolution.ABORT.value, "Cancel installation"),
]


class ConflictScanResult(BaseModel):
    """Existing paths matching a search term (immutable data structure)."""

    model_config = ConfigDict(frozen=True)

    search_term: str
    directories: list[Path] = Field(default_factory=list)
    desktop_entries: list[Path] = Field(default_factory=list)

    def has_conflicts(self) -> bool:
        return bool(self.directories or self.desktop_entries)

    def all_paths(self) -> list[Path]:
        return [*self.directories, *self.desktop_entries]


class ConflictScanner:
    """
    Search the configured install locations for a term.

    Searches (in config order) each install location down to two levels for
    directories, and the desktop directory (top level only) for ``*.desktop``
    files. The bookkeeping directories themselves (desktop dir, bin dir, log
    dir, install locations) are never reported.
    """

    def __init__(self, config: InstallConfig):
        self.config = config

    def _protected(self) -> set[Path]:
        protected = {
            self.config.primary_install_dir,
            self.config.desktop_dir,
            self.config.bin_dir,
            self.config.log_dir,
            *self.config.install_locations,
        }
        resolved = set()
        for path in protected:
            resolved.add(path)
            resolved.add(path.resolve())
            # Parents of a protected directory would take it down with them
            resolved.update(path.parents)
        return resolved

    def scan(self, search_term: str) -> ConflictScanResult:
        """
        Find directories and desktop entries whose name contains ``search_term``.

        Args:
            search_term: Substring to look for (case-insensitive)

        Returns:
            ConflictScanResult (directories in location order, deduplicated)
        """
        term = search_term.lower()
        protected = self._protected()
        directories: list[Path] = []
        seen: set[Path] = set()

        logger.debug(f"Scanning for conflicts with {search_term!r}")

        for location in self.config.install_locations:
            if not location.is_dir():
                continue
            for path, _ in walk_limited(location, LOCATION_SCAN_DEPTH):
                if term not in path.name.lower() or not path.is_dir() or path.is_symlink():
                    continue
                if path in protected or path.resolve() in protected:
                    continue
                # A directory nested in one already matched goes with its parent
                if path.resolve() in seen or any(parent in seen for parent in path.resolve().parents):
                    continue
                seen.add(path.resolve())
                directories.append(path)
                logger.debug(f"Found match: {path}")

        desktop_entries = []
        if self.config.desktop_dir.is_dir():
            for path in sorted(self.config.desktop_dir.glob("*.desktop")):
                if term in path.name.lower() and path.is_file():
                    desktop_entries.append(path)
                    logger.debug(f"Found matching desktop file: {path}")

        return ConflictScanResult(search_term=search_term, directories=directories, desktop_entries=desktop_entries)


def remove_conflicts(result: ConflictScanResult, config: InstallConfig) -> list[Path]:
    """
    Delete every conflict in ``result`` (the operator chose "replace").

    Removes each matched directory, each matched desktop entry, and any
    desktop entry whose name contains a removed directory's name.

    Args:
        result: Scan result the operator approved
        config: Supplies the desktop directory

    Returns:
        Paths actually removed
    """
    removed: list[Path] = []

    for directory in result.directories:
        if directory.is_dir():
            logger.info(f"Removing existing installation: {directory}")
            shutil.rmtree(directory)
            removed.append(directory)

        if config.desktop_dir.is_dir():
            basename = directory.name.lower()
            for entry in sorted(config.desktop_dir.glob("*.desktop")):
                if basename in entry.name.lower() and entry.is_file():
                    entry.unlink()
                    removed.append(entry)

    for entry in result.desktop_entries:
        if entry.exists():
            entry.unlink()
            removed.append(entry)

    return removed
