"""Install record index - which installations are live, newest record per app.

Records are ordered by the timestamp embedded in their file name (then by
their collision counter, then by mtime), not by directory listing order, so
the "newest" record really is the most recent one.
"""

import logging
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .config import InstallConfig
from .record import RECORD_SUFFIX
from .record import REMOVED_SUFFIX
from .record import parse_record
from .record import parse_record_key

logger = logging.getLogger(__name__)


class InstalledApplication(BaseModel):
    """A live installation as listed to the operator."""

    model_config = ConfigDict(frozen=True)

    name: str
    install_dir: Path
    record_path: Path
    timestamp: str


def _record_files(log_dir: Path) -> list[Path]:
    if not log_dir.is_dir():
        return []
    return [
        path
        for path in log_dir.iterdir()
        if path.name.endswith(RECORD_SUFFIX) and not path.name.endswith(REMOVED_SUFFIX) and path.is_file()
    ]


def _newest_first(paths: list[Path]) -> list[Path]:
    def sort_key(path: Path):
        try:
            mtime = path.stat().st_mtime
        except OSError:
            mtime = 0.0
        created, sequence = parse_record_key(path).sort_key()
        return (created, sequence, mtime, path.name)

    return sorted(paths, key=sort_key, reverse=True)


def list_live_installations(config: InstallConfig) -> list[InstalledApplication]:
    """
    List live installations, newest first, one per application.

    A record is listed only if it names an app and an install directory
    that still exists. When an app has several records, the newest live one
    wins and older ones are hidden.

    Args:
        config: Supplies the log directory

    Returns:
        InstalledApplication entries, newest first

    Example:
        >>> for app in list_live_installations(InstallConfig.default()):
        ...     print(f"{app.name}: {app.install_dir}")
        firefox: /home/me/.local/share/firefox
    """
    installations: list[InstalledApplication] = []
    seen: set[str] = set()

    for record_path in _newest_first(_record_files(config.log_dir)):
        try:
            record = parse_record(record_path)
        except OSError as e:
            logger.warning(f"Could not read install record {record_path}: {e}")
            continue

        if not record.app_name or record.app_name in seen:
            continue
        if not record.is_live():
            logger.debug(f"Skipping stale record {record_path}")
            continue

        seen.add(record.app_name)
        installations.append(
            InstalledApplication(
                name=record.app_name,
                install_dir=record.install_dir,
                record_path=record_path,
                timestamp=record.timestamp or "",
            )
        )

    return installations


def find_installation(app_name: str, config: InstallConfig) -> InstalledApplication | None:
    """Find the live installation of ``app_name`` (case-insensitive)."""
    wanted = app_name.lower()
    for installation in list_live_installations(config):
        if installation.name.lower() == wanted:
            return installation
    return None


def find_record(app_name: str, config: InstallConfig) -> Path | None:
    """
    Find the record to uninstall ``app_name`` from (case-insensitive).

    The live installation's record wins. Otherwise the newest unarchived
    record for the app with something left on disk is used, so an
    install whose directory was deleted by hand can still be cleaned up.
    Listings stay live-only; this lookup is for uninstall.

    Args:
        app_name: Application identifier
        config: Supplies the log directory

    Returns:
        Record path, or None if no unarchived record names the app
    """
    installation = find_installation(app_name, config)
    if installation is not None:
        return installation.record_path

    wanted = app_name.lower()
    for record_path in _newest_first(_record_files(config.log_dir)):
        try:
            record = parse_record(record_path)
        except OSError as e:
            logger.warning(f"Could not read install record {record_path}: {e}")
            continue

        if record.app_name and record.app_name.lower() == wanted and record.has_leftovers():
            logger.debug(f"No live installation of {app_name}, using stale record {record_path}")
            return record_path

    return None
