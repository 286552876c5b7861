"""Uninstallation - replay an install record to remove what it created.

Removal is best-effort: every recorded item is attempted even if an earlier
one failed, the record is archived regardless, and the caller learns about
leftovers through PartialUninstallError.
"""

import logging
import shutil
from pathlib import Path

from pydantic import BaseModel
from pydantic import Field

from .config import InstallConfig
from .exceptions import InstallationNotFoundError
from .exceptions import PartialUninstallError
from .index import find_record
from .protocols import DesktopDatabase
from .record import InstallRecordData
from .record import archive_record
from .record import parse_record

logger = logging.getLogger(__name__)


class RemovalSummary(BaseModel):
    """What an uninstall removed, skipped and failed to remove."""

    app_name: str | None = None
    removed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    archived_record: Path | None = None

    def succeeded(self) -> bool:
        return not self.failed


def _matching_desktop_entries(desktop_dir: Path, app_name: str | None) -> list[Path]:
    if not app_name or not desktop_dir.is_dir():
        return []
    return sorted(
        path for path in desktop_dir.iterdir() if path.name.endswith(".desktop") and app_name in path.name
    )


def describe_removal(record: InstallRecordData, config: InstallConfig) -> list[Path]:
    """
    List the paths an uninstall of ``record`` would remove right now.

    Args:
        record: Parsed install record
        config: Supplies the desktop directory

    Returns:
        Existing paths, in removal order
    """
    paths = [link for link, _ in record.symlinks if link.is_symlink()]
    if record.desktop_file and record.desktop_file.is_file():
        paths.append(record.desktop_file)
    for entry in _matching_desktop_entries(config.desktop_dir, record.app_name):
        if entry not in paths:
            paths.append(entry)
    if record.install_dir and record.install_dir.is_dir():
        paths.append(record.install_dir)
    return paths


def remove_recorded_artifacts(
    record: InstallRecordData,
    config: InstallConfig,
    include_name_matches: bool = True,
) -> RemovalSummary:
    """
    Remove the symlinks, desktop entries and directory a record describes.

    Order: symlinks, recorded desktop file, desktop entries named after the
    app, install directory. Symlinks that are gone or were replaced by a
    regular file are skipped, as is a missing install directory.

    Args:
        record: Parsed install record
        config: Supplies the desktop directory
        include_name_matches: Also remove desktop entries whose name contains the app name

    Returns:
        RemovalSummary (the record itself is not archived here)
    """
    summary = RemovalSummary(app_name=record.app_name)

    for link, _ in record.symlinks:
        if not link.is_symlink():
            summary.skipped.append(f"Symlink: {link}")
            continue
        try:
            link.unlink()
            summary.removed.append(f"Symlink: {link}")
        except OSError as e:
            logger.warning(f"Could not remove symlink {link}: {e}")
            summary.failed.append(f"Symlink: {link}")

    desktop_files = []
    if record.desktop_file:
        if record.desktop_file.is_file():
            desktop_files.append(record.desktop_file)
        else:
            summary.skipped.append(f"Desktop file: {record.desktop_file}")
    name_matches = _matching_desktop_entries(config.desktop_dir, record.app_name) if include_name_matches else []
    for entry in name_matches:
        if entry not in desktop_files:
            desktop_files.append(entry)

    for desktop_file in desktop_files:
        try:
            desktop_file.unlink()
            summary.removed.append(f"Desktop file: {desktop_file}")
        except OSError as e:
            logger.warning(f"Could not remove desktop file {desktop_file}: {e}")
            summary.failed.append(f"Desktop file: {desktop_file}")

    if record.install_dir:
        if record.install_dir.is_dir():
            try:
                shutil.rmtree(record.install_dir)
                summary.removed.append(f"Directory: {record.install_dir}")
            except OSError as e:
                logger.warning(f"Could not remove directory {record.install_dir}: {e}")
                summary.failed.append(f"Directory: {record.install_dir}")
        else:
            summary.skipped.append(f"Directory: {record.install_dir}")

    return summary


def uninstall_record(
    record_path: Path,
    config: InstallConfig,
    desktop_database: DesktopDatabase | None = None,
) -> RemovalSummary:
    """
    Uninstall the installation described by one record.

    Process:
    1. Parse the record's metadata
    2. Remove recorded artifacts (best-effort)
    3. Archive the record as ``*.removed.log``
    4. Refresh the desktop database (if provided)

    Args:
        record_path: Path to the install record
        config: Install configuration
        desktop_database: Optional menu cache refresher

    Returns:
        RemovalSummary when everything was removed

    Raises:
        PartialUninstallError: If any item could not be removed (carries the summary)
        OSError: If the record cannot be read
    """
    record = parse_record(record_path)
    logger.info(f"Uninstalling {record.app_name} (record {record_path})")

    summary = remove_recorded_artifacts(record, config)

    try:
        summary.archived_record = archive_record(record_path)
        summary.removed.append(f"Log archived: {summary.archived_record}")
    except OSError as e:
        logger.warning(f"Could not archive record {record_path}: {e}")
        summary.failed.append(f"Log: {record_path}")

    if desktop_database is not None:
        desktop_database.refresh(config.desktop_dir)

    if not summary.succeeded():
        raise PartialUninstallError(summary, context={"record": str(record_path)})

    logger.info(f"Successfully uninstalled: {record.app_name}")
    return summary


def uninstall_application(
    app_name: str,
    config: InstallConfig,
    desktop_database: DesktopDatabase | None = None,
) -> RemovalSummary:
    """
    Uninstall ``app_name`` (case-insensitive).

    Uses the live installation's record, or the newest unarchived record if
    the install directory is already gone (see index.find_record).

    Raises:
        InstallationNotFoundError: If no unarchived record names the app
        PartialUninstallError: If some items could not be removed
    """
    record_path = find_record(app_name, config)
    if record_path is None:
        raise InstallationNotFoundError(
            f"Application '{app_name}' not found", context={"app_name": app_name, "log_dir": str(config.log_dir)}
        )

    return uninstall_record(record_path, config, desktop_database=desktop_database)
