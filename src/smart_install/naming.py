"""Application name derivation from archive filenames.

Turns ``MyApp_v2.3.1-beta-linux-x86_64.tar.xz`` into ``myapp``. The derived
name keys the install directory, the desktop entry and the install record, so
it must be deterministic for a given filename.
"""

import logging
import re
from pathlib import Path

from .config import DEFAULT_ARCHITECTURE_TOKENS
from .config import DEFAULT_ARCHIVE_EXTENSIONS
from .config import DEFAULT_OS_TOKENS
from .config import DEFAULT_RELEASE_TOKENS
from .config import InstallConfig

logger = logging.getLogger(__name__)

_VERSION_PATTERN = re.compile(r"[-_]v?[0-9]+(\.[0-9]+)*([-.][a-zA-Z0-9]+)?")
_DELIMITER_PATTERN = re.compile(r"[-_]")
_FALLBACK_NAME = "app"


def _token_pattern(tokens: list[str], suffix: str = "") -> re.Pattern[str]:
    alternatives = "|".join(re.escape(token) for token in sorted(tokens, key=len, reverse=True))
    return re.compile(rf"[-_]({alternatives}){suffix}(?![a-zA-Z0-9])", re.IGNORECASE)


def strip_archive_extension(filename: str, extensions: list[str] | None = None) -> str:
    """Remove a recognised archive extension (case-insensitive) from ``filename``."""
    for extension in extensions or DEFAULT_ARCHIVE_EXTENSIONS:
        if filename.lower().endswith(extension.lower()):
            return filename[: -len(extension)]
    return filename


def derive_app_name(filename: str | Path, config: InstallConfig | None = None) -> str:
    """Derive a canonical application identifier from an archive filename.

    Steps, in order:
    1. Strip the archive extension
    2. Strip architecture tokens (x86_64, amd64, arm64, ...)
    3. Strip OS tokens (linux, gnu, windows, ...), with an optional 32/64 suffix
    4. Strip version segments (-1.2.3, _v2.0, -1.0.0-beta)
    5. Strip release-type suffixes (release, stable, beta, alpha, rcN)
    6. Trim delimiters and fold whitespace into dashes
    7. Lowercase

    Architecture and OS tokens go before versions; otherwise the digits in
    ``x86_64`` would be eaten as a version fragment.

    Args:
        filename: Archive file name or path (only the basename is used)
        config: Optional config supplying the token lists

    Returns:
        Non-empty lowercase identifier without whitespace

    Examples:
        >>> derive_app_name("firefox-128.0.tar.gz")
        'firefox'
        >>> derive_app_name("MyApp_v2.3.1-beta-linux-x86_64.tar.xz")
        'myapp'
        >>> derive_app_name("tool-amd64.tgz")
        'tool'
    """
    basename = Path(filename).name

    if config is not None:
        extensions = config.archive_extensions
        architectures = config.architecture_tokens
        systems = config.os_tokens
        releases = config.release_tokens
    else:
        extensions = DEFAULT_ARCHIVE_EXTENSIONS
        architectures = DEFAULT_ARCHITECTURE_TOKENS
        systems = DEFAULT_OS_TOKENS
        releases = DEFAULT_RELEASE_TOKENS

    name = strip_archive_extension(basename, extensions)
    name = _token_pattern(architectures).sub("", name)
    name = _token_pattern(systems, suffix="(?:32|64)?").sub("", name)
    name = _VERSION_PATTERN.sub("", name)

    # Release tokens are regex fragments (rc[0-9]*), so not escaped
    release_pattern = re.compile(rf"[-_]+({'|'.join(releases)})(?![a-zA-Z0-9])", re.IGNORECASE)
    name = release_pattern.sub("", name)

    name = re.sub(r"\s+", "-", name.strip())
    name = name.strip("-_").lower()

    if not name:
        name = _fallback_name(basename, extensions)
        logger.debug(f"Derivation stripped everything from {basename!r}, falling back to {name!r}")

    return name


def _fallback_name(basename: str, extensions: list[str]) -> str:
    """First delimiter-separated segment of the original filename."""
    first = _DELIMITER_PATTERN.split(basename, maxsplit=1)[0]
    if not first:
        # Leading delimiter: use the first non-empty segment instead
        segments = [s for s in _DELIMITER_PATTERN.split(strip_archive_extension(basename, extensions)) if s.strip()]
        first = segments[0] if segments else _FALLBACK_NAME
    return re.sub(r"\s+", "-", first.strip()).lower() or _FALLBACK_NAME
