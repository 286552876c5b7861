"""Install records - the log store shared by install and uninstall.

One file per install attempt, named ``<app>-<YYYYmmdd-HHMMSS>.log``. The file
mixes two kinds of lines:

- Operational lines, always prefixed with ``[HH:MM:SS]``, for humans
- Metadata lines, ``Key: value`` at column zero, read back by the uninstaller

Example:

    ========================================
    Smart Tarball Installer - Installation Log
    ========================================
    Timestamp: 2026-10-19 14:02:11
    Original archive: /home/me/Downloads/firefox-128.0.tar.gz
    Archive filename: firefox-128.0.tar.gz
    Derived app name: firefox
    ----------------------------------------
    [14:02:11] Starting installation process
    Final installation directory: /home/me/.local/share/firefox
    Created symlink: /home/me/.local/bin/firefox -> /home/me/.local/share/firefox/firefox
    Desktop file installed: /home/me/.local/share/applications/firefox.desktop

Because operational lines always carry the time prefix, free text can never
be mistaken for metadata. Uninstalled records are renamed in place to
``<app>-<timestamp>.removed.log``; they are never deleted.
"""

import logging
import re
import stat
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

logger = logging.getLogger(__name__)

TIMESTAMP_KEY_FORMAT = "%Y%m%d-%H%M%S"
TIMESTAMP_DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"
RECORD_SUFFIX = ".log"
REMOVED_SUFFIX = ".removed.log"

KEY_TIMESTAMP = "Timestamp"
KEY_ORIGINAL_ARCHIVE = "Original archive"
KEY_ARCHIVE_FILENAME = "Archive filename"
KEY_APP_NAME = "Derived app name"
KEY_INSTALL_DIR = "Final installation directory"
KEY_DESKTOP_FILE = "Desktop file installed"
KEY_SYMLINK = "Created symlink"

METADATA_KEYS = (
    KEY_TIMESTAMP,
    KEY_ORIGINAL_ARCHIVE,
    KEY_ARCHIVE_FILENAME,
    KEY_APP_NAME,
    KEY_INSTALL_DIR,
    KEY_DESKTOP_FILE,
    KEY_SYMLINK,
)

SYMLINK_SEPARATOR = " -> "

_RECORD_NAME = re.compile(
    r"^(?P<app>.+)-(?P<stamp>\d{8}-\d{6})(?:-(?P<seq>\d+))?(?P<removed>\.removed)?\.log$"
)


class RecordKey(BaseModel):
    """Identity of a record file, parsed from its name."""

    model_config = ConfigDict(frozen=True)

    app_name: str
    created: datetime | None = None
    sequence: int = 0
    removed: bool = False

    def sort_key(self) -> tuple[datetime, int]:
        return (self.created or datetime.min, self.sequence)


def parse_record_key(record_path: Path) -> RecordKey:
    """Parse ``<app>-<YYYYmmdd-HHMMSS>[-N][.removed].log``.

    Names that do not follow the pattern keep their stem as the app name and
    have no creation time.
    """
    match = _RECORD_NAME.match(record_path.name)
    if not match:
        stem = record_path.name.removesuffix(REMOVED_SUFFIX).removesuffix(RECORD_SUFFIX)
        return RecordKey(app_name=stem, removed=record_path.name.endswith(REMOVED_SUFFIX))

    try:
        created = datetime.strptime(match["stamp"], TIMESTAMP_KEY_FORMAT)
    except ValueError:
        created = None

    return RecordKey(
        app_name=match["app"],
        created=created,
        sequence=int(match["seq"] or 0),
        removed=match["removed"] is not None,
    )


class InstallRecordData(BaseModel):
    """Metadata read back from an install record (immutable)."""

    model_config = ConfigDict(frozen=True)

    path: Path
    key: RecordKey
    app_name: str | None = None
    timestamp: str | None = None
    original_archive: str | None = None
    archive_filename: str | None = None
    install_dir: Path | None = None
    desktop_file: Path | None = None
    symlinks: list[tuple[Path, Path]] = Field(default_factory=list)

    def is_live(self) -> bool:
        """True if the recorded install directory still exists."""
        return self.install_dir is not None and self.install_dir.is_dir()

    def has_leftovers(self) -> bool:
        """True if anything the record names is still on disk."""
        return (
            self.is_live()
            or (self.desktop_file is not None and self.desktop_file.is_file())
            or any(link.is_symlink() for link, _ in self.symlinks)
        )


def parse_record(record_path: Path) -> InstallRecordData:
    """
    Read the metadata lines of an install record.

    Only lines starting with a known key are metadata. The first occurrence
    of each key wins, except ``Created symlink`` which accumulates in order.

    Args:
        record_path: Path to the record file

    Returns:
        InstallRecordData with whatever fields the record contains

    Raises:
        OSError: If the file cannot be read
    """
    values: dict[str, str] = {}
    symlinks: list[tuple[Path, Path]] = []

    with open(record_path, encoding="utf-8", errors="replace") as f:
        for raw_line in f:
            line = raw_line.rstrip("\n")
            for key in METADATA_KEYS:
                prefix = f"{key}: "
                if not line.startswith(prefix):
                    continue
                value = line[len(prefix) :].strip()
                if key == KEY_SYMLINK:
                    link, separator, target = value.partition(SYMLINK_SEPARATOR)
                    if link and separator:
                        symlinks.append((Path(link), Path(target)))
                elif key not in values:
                    values[key] = value
                break

    install_dir = values.get(KEY_INSTALL_DIR)
    desktop_file = values.get(KEY_DESKTOP_FILE)

    return InstallRecordData(
        path=record_path,
        key=parse_record_key(record_path),
        app_name=values.get(KEY_APP_NAME) or None,
        timestamp=values.get(KEY_TIMESTAMP) or None,
        original_archive=values.get(KEY_ORIGINAL_ARCHIVE) or None,
        archive_filename=values.get(KEY_ARCHIVE_FILENAME) or None,
        install_dir=Path(install_dir) if install_dir else None,
        desktop_file=Path(desktop_file) if desktop_file else None,
        symlinks=symlinks,
    )


class InstallRecord:
    """
    Append-only writer for one install attempt's record.

    Create with InstallRecord.open(); every write is flushed immediately so a
    crash mid-install leaves everything recorded so far on disk.
    """

    TITLE = "Smart Tarball Installer - Installation Log"

    def __init__(self, path: Path):
        self.path = path

    @classmethod
    def open(
        cls,
        log_dir: Path,
        app_name: str,
        archive_path: Path,
        now: datetime | None = None,
    ) -> "InstallRecord":
        """Create a new record for ``app_name`` and write its header.

        Args:
            log_dir: Record store directory (created if missing)
            app_name: Derived application identifier
            archive_path: Archive being installed
            now: Creation time (defaults to the current local time)

        Returns:
            InstallRecord positioned at the end of the header
        """
        now = now or datetime.now()
        log_dir.mkdir(parents=True, exist_ok=True)

        stem = f"{app_name}-{now.strftime(TIMESTAMP_KEY_FORMAT)}"
        path = log_dir / f"{stem}{RECORD_SUFFIX}"
        sequence = 1
        while path.exists() or (log_dir / f"{path.name.removesuffix(RECORD_SUFFIX)}{REMOVED_SUFFIX}").exists():
            path = log_dir / f"{stem}-{sequence}{RECORD_SUFFIX}"
            sequence += 1

        record = cls(path)
        record._write(
            "=" * 40,
            cls.TITLE,
            "=" * 40,
            f"{KEY_TIMESTAMP}: {now.strftime(TIMESTAMP_DISPLAY_FORMAT)}",
            f"{KEY_ORIGINAL_ARCHIVE}: {archive_path}",
            f"{KEY_ARCHIVE_FILENAME}: {archive_path.name}",
            f"{KEY_APP_NAME}: {app_name}",
            "-" * 40,
        )
        logger.debug(f"Opened install record {path}")
        return record

    def _write(self, *lines: str) -> None:
        with open(self.path, "a", encoding="utf-8") as f:
            for line in lines:
                f.write(f"{line}\n")

    def log(self, message: str) -> None:
        """Append an operational line for humans."""
        for line in str(message).splitlines() or [""]:
            self._write(f"[{datetime.now().strftime('%H:%M:%S')}] {line}")

    def section(self, title: str) -> None:
        self._write("", f"=== {title} ===")

    def metadata(self, key: str, value: str | Path) -> None:
        """Append a machine-readable ``Key: value`` line."""
        if key not in METADATA_KEYS:
            raise ValueError(f"Unknown metadata key: {key}")
        self._write(f"{key}: {value}")

    def record_symlink(self, link: Path, target: Path) -> None:
        self.metadata(KEY_SYMLINK, f"{link}{SYMLINK_SEPARATOR}{target}")

    def record_manifest(self, install_dir: Path) -> list[Path]:
        """Append ``<mode> <path>`` for every file under ``install_dir``.

        Returns:
            The listed files, sorted
        """
        files = sorted(p for p in install_dir.rglob("*") if p.is_file() or p.is_symlink())
        self._write(*(f"{_file_mode(p)} {p}" for p in files))
        return files

    def read(self) -> InstallRecordData:
        return parse_record(self.path)


def _file_mode(path: Path) -> str:
    try:
        return stat.filemode(path.lstat().st_mode)
    except OSError:
        return "?" * 10


def archive_record(record_path: Path) -> Path:
    """Rename a record to ``*.removed.log`` in place. Already-archived records are left alone.

    Returns:
        The archived record path
    """
    if record_path.name.endswith(REMOVED_SUFFIX):
        return record_path

    archived = record_path.with_name(record_path.name.removesuffix(RECORD_SUFFIX) + REMOVED_SUFFIX)
    record_path.rename(archived)
    logger.debug(f"Archived install record {record_path} -> {archived}")
    return archived
