"""Archive layout resolution and the source-code gate.

Supports both common tarball layouts:
- Wrapped: extract_root/app-1.0/<payload> (one top-level directory)
- Flat: extract_root/<payload> (files directly at the top level)
"""

import logging
from collections.abc import Iterator
from pathlib import Path

from .config import InstallConfig

logger = logging.getLogger(__name__)

SOURCE_SCAN_DEPTH = 3
SOURCE_FILE_SUFFIXES = {".c", ".cpp", ".h", ".hpp"}
SRC_DIR_SCAN_DEPTH = 2


def resolve_logical_root(extract_root: Path) -> Path:
    """Find the directory that actually holds the payload.

    Args:
        extract_root: Directory the archive was extracted into

    Returns:
        The single top-level directory if that is all the archive holds,
        otherwise ``extract_root`` itself
    """
    entries = list(extract_root.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        logger.debug(f"Logical root (single directory): {entries[0]}")
        return entries[0]

    logger.debug(f"Logical root (multiple items): {extract_root}")
    return extract_root


def walk_limited(root: Path, max_depth: int | None = None) -> Iterator[tuple[Path, int]]:
    """Yield ``(path, depth)`` for entries below ``root`` down to ``max_depth``.

    Children of ``root`` are depth 1; ``max_depth=None`` walks the whole tree.
    Entries are yielded breadth-first and sorted by name within a directory.
    Symlinked directories are not entered.
    """
    level = [root]
    depth = 0
    while level and (max_depth is None or depth < max_depth):
        depth += 1
        next_level = []
        for directory in level:
            try:
                children = sorted(directory.iterdir(), key=lambda p: p.name)
            except OSError as e:
                logger.debug(f"Cannot list {directory}: {e}")
                continue
            for child in children:
                yield child, depth
                if child.is_dir() and not child.is_symlink():
                    next_level.append(child)
        level = next_level


def _has_c_sources(src_dir: Path) -> bool:
    return any(
        path.suffix.lower() in SOURCE_FILE_SUFFIXES and path.is_file()
        for path, _ in walk_limited(src_dir, SRC_DIR_SCAN_DEPTH)
    )


def detect_source_indicators(root: Path, config: InstallConfig) -> list[str]:
    """
    Look for signs that the payload is source code rather than a build.

    Checks (within three levels of ``root``):
    - Build-system marker files (configure, CMakeLists.txt, Cargo.toml, ...)
    - A ``src`` directory (any case) holding C/C++ sources or headers

    Args:
        root: Logical root of the extracted archive
        config: Supplies the marker file names

    Returns:
        Labels of the indicators found, in configuration order; empty if the
        payload looks pre-built
    """
    markers = set(config.source_indicators)
    found_markers: set[str] = set()
    has_src_dir = False

    for path, _ in walk_limited(root, SOURCE_SCAN_DEPTH):
        if path.name in markers and path.is_file():
            found_markers.add(path.name)
        elif not has_src_dir and path.name.lower() == "src" and path.is_dir() and _has_c_sources(path):
            has_src_dir = True

    indicators = [marker for marker in config.source_indicators if marker in found_markers]
    if has_src_dir:
        indicators.append("src/ with C/C++ files")

    for indicator in indicators:
        logger.debug(f"Found source indicator: {indicator}")

    return indicators
