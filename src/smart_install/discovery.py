"""Payload discovery - find the main executable, a shipped desktop entry and an icon.

All lookups are rooted at the logical root of the extracted archive and walk
it breadth-first in name order, so "first match" is deterministic and prefers
shallow files.
"""

import logging
import stat
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .layout import walk_limited
from .protocols import BinaryDetector

logger = logging.getLogger(__name__)

DESKTOP_FILE_DEPTH = 3
ICON_DEPTH = 4
ICON_PATTERNS = (".png", ".svg", ".xpm", ".ico")
ICON_FALLBACK_PATTERNS = (".png", ".svg")
ICON_DIR_HINTS = {"icons", "pixmaps"}


class PayloadResources(BaseModel):
    """What discovery found in a payload (immutable data structure)."""

    model_config = ConfigDict(frozen=True)

    main_executable: Path | None = None
    desktop_file: Path | None = None
    icon: Path | None = None


def _is_executable_file(path: Path) -> bool:
    try:
        mode = path.stat().st_mode
    except OSError:
        return False
    return stat.S_ISREG(mode) and bool(mode & 0o111)


def find_main_executable(root: Path, detector: BinaryDetector) -> Path | None:
    """
    Find the first executable file that the detector accepts as a native binary.

    Args:
        root: Logical root of the payload
        detector: Filters out scripts and libraries

    Returns:
        Path to the main executable, or None if the payload has none
    """
    for path, _ in walk_limited(root):
        if path.is_symlink() or not _is_executable_file(path):
            continue
        if detector.is_native_binary(path):
            logger.debug(f"Main executable: {path}")
            return path
        logger.debug(f"Skipping non-native executable: {path}")
    return None


def find_desktop_file(root: Path) -> Path | None:
    """First ``*.desktop`` file within three levels of ``root``."""
    for path, _ in walk_limited(root, DESKTOP_FILE_DEPTH):
        if path.suffix == ".desktop" and path.is_file():
            return path
    return None


def find_icon_file(root: Path, app_name: str) -> Path | None:
    """
    Find an icon for a fabricated desktop entry.

    Tries each format in turn (png, svg, xpm, ico), accepting files under an
    ``icons``/``pixmaps`` directory, with ``icon`` in the name, or named after
    the app. Falls back to any png or svg.

    Args:
        root: Logical root (or install directory) to search
        app_name: Application identifier

    Returns:
        Icon path, or None
    """
    candidates = [path for path, _ in walk_limited(root, ICON_DEPTH) if path.is_file()]

    for suffix in ICON_PATTERNS:
        for path in candidates:
            if path.suffix.lower() != suffix:
                continue
            name = path.name.lower()
            in_icon_dir = any(part.lower() in ICON_DIR_HINTS for part in path.relative_to(root).parts[:-1])
            if in_icon_dir or "icon" in name or name.startswith(app_name.lower()):
                return path

    for path in candidates:
        if path.suffix.lower() in ICON_FALLBACK_PATTERNS:
            return path

    return None


def find_icon_by_name(root: Path, icon_name: str) -> Path | None:
    """
    Resolve a relative ``Icon=`` value to an image file under ``root``.

    Only png/svg/xpm/ico files are considered. An exact match on the file
    name or stem wins over a prefix match, so ``Icon=demo`` finds
    ``icons/demo.png`` rather than ``demo-small.png`` or the ``demo`` binary.

    Args:
        root: Installation directory to search
        icon_name: ``Icon=`` value (theme name or file name)

    Returns:
        Icon path, or None
    """
    wanted = icon_name.lower()
    images = [
        path for path, _ in walk_limited(root) if path.suffix.lower() in ICON_PATTERNS and path.is_file()
    ]

    for path in images:
        if wanted in (path.name.lower(), path.stem.lower()):
            return path

    for path in images:
        if path.name.lower().startswith(wanted):
            return path

    return None


def discover_payload(root: Path, app_name: str, detector: BinaryDetector) -> PayloadResources:
    """
    Discover the parts of a payload that desktop integration needs.

    Args:
        root: Logical root of the payload
        app_name: Application identifier
        detector: Native binary detector

    Returns:
        PayloadResources with whatever was found

    Example:
        >>> resources = discover_payload(Path("/tmp/x/firefox"), "firefox", ElfBinaryDetector())
        >>> resources.main_executable
        PosixPath('/tmp/x/firefox/firefox')
    """
    return PayloadResources(
        main_executable=find_main_executable(root, detector),
        desktop_file=find_desktop_file(root),
        icon=find_icon_file(root, app_name),
    )
