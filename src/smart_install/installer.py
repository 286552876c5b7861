"""Tarball installation.

The engine decides nothing about HOW to extract, prompt or notify: callers
inject those collaborators (see protocols.py). Every side effect is written
to the install record as soon as it happens, so uninstall can reverse it.

Process:
1. Derive the app name and open an install record
2. Extract into a temporary workspace (always removed afterwards)
3. Resolve the logical root and refuse source-code archives
4. Scan for conflicting installs and apply the operator's choice
5. Copy the payload, link the main executable, install a desktop entry
"""

import logging
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel
from pydantic import Field

from .config import InstallConfig
from .conflicts import RESOLUTION_LABELS
from .conflicts import ConflictResolution
from .conflicts import ConflictScanner
from .conflicts import remove_conflicts
from .desktop import display_name
from .desktop import install_desktop_entry
from .discovery import discover_payload
from .exceptions import ArchiveNotFoundError
from .exceptions import InstallAbortedError
from .exceptions import InstallError
from .exceptions import SourceCodeDetectedError
from .exceptions import UnsupportedArchiveError
from .host import ElfBinaryDetector
from .host import TarballExtractor
from .layout import detect_source_indicators
from .layout import resolve_logical_root
from .naming import derive_app_name
from .protocols import ArchiveExtractor
from .protocols import BinaryDetector
from .protocols import DesktopDatabase
from .protocols import Notifier
from .protocols import Prompter
from .record import KEY_DESKTOP_FILE
from .record import KEY_INSTALL_DIR
from .record import InstallRecord
from .record import archive_record
from .uninstaller import remove_recorded_artifacts

logger = logging.getLogger(__name__)

INSTALL_DIR_SUFFIX_FORMAT = "%Y%m%d%H%M%S"


class InstallResult(BaseModel):
    """Outcome of a successful installation."""

    app_name: str
    install_dir: Path
    record_path: Path
    main_executable: Path | None = None
    symlink: Path | None = None
    desktop_file: Path | None = None
    manifest: list[Path] = Field(default_factory=list)
    removed_conflicts: list[Path] = Field(default_factory=list)


def final_install_dir(base: Path, app_name: str, now: datetime | None = None) -> Path:
    """``<base>/<app_name>``, or ``<base>/<app_name>-<YYYYmmddHHMMSS>`` if that exists."""
    candidate = base / app_name
    if not candidate.exists():
        return candidate

    stamped = base / f"{app_name}-{(now or datetime.now()).strftime(INSTALL_DIR_SUFFIX_FORMAT)}"
    candidate = stamped
    counter = 1
    while candidate.exists():
        candidate = stamped.with_name(f"{stamped.name}-{counter}")
        counter += 1
    return candidate


def _ask_search_term(app_name: str, prompter: Prompter, search_term: str | None) -> str:
    if search_term is None:
        search_term = prompter.ask_text("Enter search string for detecting existing installations:", app_name)
    search_term = (search_term or "").strip()
    return search_term or app_name


def _resolve_conflicts(search_term: str, config: InstallConfig, prompter: Prompter, record: InstallRecord) -> list[Path]:
    record.section("Conflict Detection")
    record.log(f"Search term: {search_term}")

    result = ConflictScanner(config).scan(search_term)
    if not result.has_conflicts():
        record.log("No existing installations found")
        return []

    for path in result.all_paths():
        record.log(f"Found match: {path}")

    listing = "\n".join(f"  - {path}" for path in result.all_paths())
    choice = prompter.choose(
        f"Found existing installation(s) matching '{search_term}':\n\n{listing}\n\nWhat would you like to do?",
        RESOLUTION_LABELS,
    )

    try:
        resolution = ConflictResolution(choice)
    except ValueError:
        resolution = ConflictResolution.ABORT

    if resolution is ConflictResolution.ABORT:
        record.log("User chose: Abort installation")
        raise InstallAbortedError("Installation cancelled.", context={"search_term": search_term})

    if resolution is ConflictResolution.INSTALL_ANYWAY:
        record.log("User chose: Install anyway")
        return []

    record.log("User chose: Remove and replace")
    removed = remove_conflicts(result, config)
    for path in removed:
        record.log(f"Removed: {path}")
    return removed


def _link_executable(exec_path: Path, bin_dir: Path, record: InstallRecord) -> Path | None:
    link = bin_dir / exec_path.name
    bin_dir.mkdir(parents=True, exist_ok=True)

    if link.is_symlink():
        link.unlink()
    elif link.exists():
        record.log(f"WARNING: {link} exists and is not a symlink, leaving it alone")
        logger.warning(f"Not replacing {link}: it is not a symlink")
        return None

    link.symlink_to(exec_path)
    record.record_symlink(link, exec_path)
    return link


def _install_payload(
    root: Path,
    app_name: str,
    config: InstallConfig,
    prompter: Prompter,
    detector: BinaryDetector,
    record: InstallRecord,
) -> InstallResult:
    record.section("Installation")

    install_dir = final_install_dir(config.primary_install_dir, app_name)
    record.log(f"Installation directory: {install_dir}")

    install_dir.parent.mkdir(parents=True, exist_ok=True)
    shutil.copytree(root, install_dir, symlinks=True)
    record.metadata(KEY_INSTALL_DIR, install_dir)
    record.log("Files copied to installation directory")

    resources = discover_payload(root, app_name, detector)

    exec_path = None
    symlink = None
    if resources.main_executable is None:
        record.log("WARNING: No executable found in archive")
        prompter.warning(
            "Warning: No executable binary was found in this archive. "
            "You may need to set permissions manually."
        )
    else:
        exec_path = install_dir / resources.main_executable.relative_to(root)
        record.log(f"Main executable: {exec_path}")
        exec_path.chmod(exec_path.stat().st_mode | 0o111)
        symlink = _link_executable(exec_path, config.bin_dir, record)

    record.section("Desktop Integration")
    shipped_entry = install_dir / resources.desktop_file.relative_to(root) if resources.desktop_file else None
    icon = install_dir / resources.icon.relative_to(root) if resources.icon else None
    if shipped_entry:
        record.log(f"Found existing desktop file: {shipped_entry}")
    else:
        record.log("No desktop file found, creating minimal one")

    desktop_file = install_desktop_entry(
        destination=config.desktop_dir / f"{app_name}.desktop",
        app_name=app_name,
        install_dir=install_dir,
        exec_path=exec_path,
        shipped_entry=shipped_entry,
        icon=icon,
        fallback_icon=config.fallback_icon,
        category=config.desktop_category,
    )
    record.metadata(KEY_DESKTOP_FILE, desktop_file)

    record.section("Installed Files Manifest")
    manifest = record.record_manifest(install_dir)

    return InstallResult(
        app_name=app_name,
        install_dir=install_dir,
        record_path=record.path,
        main_executable=exec_path,
        symlink=symlink,
        desktop_file=desktop_file,
        manifest=manifest,
    )


def _roll_back(record: InstallRecord, config: InstallConfig) -> None:
    """Undo the steps a failed attempt already recorded (opt-in)."""
    data = record.read()
    if data.install_dir is None:
        return

    record.log("Rolling back recorded steps")
    summary = remove_recorded_artifacts(data, config, include_name_matches=False)
    for item in summary.removed:
        record.log(f"Rolled back: {item}")
    for item in summary.failed:
        record.log(f"Rollback failed: {item}")

    try:
        archive_record(record.path)
    except OSError as e:
        record.log(f"WARNING: Could not archive record: {e}")
        logger.warning(f"Could not archive record {record.path}: {e}")


def install_archive(
    archive_path: Path,
    config: InstallConfig,
    prompter: Prompter,
    extractor: ArchiveExtractor | None = None,
    detector: BinaryDetector | None = None,
    notifier: Notifier | None = None,
    desktop_database: DesktopDatabase | None = None,
    search_term: str | None = None,
) -> InstallResult:
    """
    Install a pre-compiled application from a tarball.

    Args:
        archive_path: Tarball to install
        config: Install configuration (paths, token lists)
        prompter: Asks for the search term and the conflict resolution
        extractor: Archive extractor (TarballExtractor if omitted)
        detector: Native binary detector (ElfBinaryDetector if omitted)
        notifier: Optional desktop notifier
        desktop_database: Optional menu cache refresher
        search_term: Conflict search term; asked from the operator if None

    Returns:
        InstallResult describing what was installed

    Raises:
        ArchiveNotFoundError: Archive missing
        UnsupportedArchiveError: Archive type not supported by the extractor
        SourceCodeDetectedError: Archive contains source code (nothing installed)
        InstallAbortedError: Operator aborted at the conflict prompt (nothing installed)
        InstallError: Any other failure (partial state stays unless rollback_on_failure)

    Example:
        >>> result = install_archive(Path("firefox-128.0.tar.gz"), InstallConfig.default(), ClickPrompter())
        >>> result.install_dir
        PosixPath('/home/me/.local/share/firefox')
    """
    archive_path = Path(archive_path)
    extractor = extractor or TarballExtractor()
    detector = detector or ElfBinaryDetector()

    if not archive_path.is_file():
        raise ArchiveNotFoundError(f"File not found: {archive_path}", context={"archive": str(archive_path)})
    if not extractor.supports(archive_path):
        raise UnsupportedArchiveError(
            f"Unsupported archive format: {archive_path.name}", context={"archive": str(archive_path)}
        )

    app_name = derive_app_name(archive_path.name, config)
    record = InstallRecord.open(config.log_dir, app_name, archive_path)
    record.log("Starting installation process")
    logger.info(f"Installing {archive_path} as {app_name}")

    try:
        config.tmp_base.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="smart-install-", dir=config.tmp_base) as tmp_dir:
            record.log(f"Temporary directory: {tmp_dir}")
            extract_dir = Path(tmp_dir) / "extract"
            extract_dir.mkdir()

            record.log(f"Extracting archive to: {extract_dir}")
            extractor.extract(archive_path, extract_dir)
            record.log("Extraction complete")

            root = resolve_logical_root(extract_dir)
            record.log(f"Extracted root: {root}")

            record.section("Source Code Detection")
            indicators = detect_source_indicators(root, config)
            if indicators:
                for indicator in indicators:
                    record.log(f"Found source indicator: {indicator}")
                raise SourceCodeDetectedError(indicators, context={"archive": str(archive_path)})
            record.log("No source code indicators found - appears to be pre-compiled")

            term = _ask_search_term(app_name, prompter, search_term)
            record.log(f"User-confirmed search string: {term}")
            removed_conflicts = _resolve_conflicts(term, config, prompter, record)

            result = _install_payload(root, app_name, config, prompter, detector, record)
            result.removed_conflicts = removed_conflicts
        record.log("Removed temporary directory")

    except SourceCodeDetectedError as e:
        record.log(f"Installation halted: source code detected ({', '.join(e.indicators)})")
        if notifier:
            notifier.notify("Smart Install", "Source code detected - manual compilation required", "normal", "dialog-warning")
        raise
    except InstallAbortedError:
        record.log("Installation aborted by user")
        raise
    except Exception as e:
        error = e if isinstance(e, InstallError) else InstallError(f"Installation failed: {e}")
        record.log(f"ERROR: {error.message}")
        logger.error(f"Installation of {archive_path} failed: {error.message}")
        if config.rollback_on_failure:
            _roll_back(record, config)
        if notifier:
            notifier.notify("Smart Install Error", error.message, "critical", "dialog-error")
        if error is e:
            raise
        raise error from e

    if desktop_database is not None:
        desktop_database.refresh(config.desktop_dir)

    record.section("Installation Complete")
    record.log(f"Log file: {record.path}")
    if notifier:
        notifier.notify("Smart Install", f"Successfully installed to:\n{result.install_dir}", "normal", "package-x-generic")

    logger.info(f"Successfully installed {display_name(app_name)} to {result.install_dir}")
    return result
