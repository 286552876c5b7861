"""Desktop entry installation.

Either adapts the ``.desktop`` file an archive ships (absolute ``Exec=``,
absolute ``Icon=``) or writes a minimal one. Line-based on purpose: shipped
entries keep their comments, translations and action sections untouched.
"""

import logging
import shutil
from pathlib import Path

from .discovery import find_icon_by_name

logger = logging.getLogger(__name__)

DESKTOP_ENTRY_MODE_BITS = 0o111


def display_name(app_name: str) -> str:
    """``firefox`` -> ``Firefox``."""
    return app_name[:1].upper() + app_name[1:]


def rewrite_desktop_entry(content: str, exec_path: Path | None, install_dir: Path) -> str:
    """
    Point a shipped desktop entry at the installed payload.

    - Every ``Exec=`` line becomes ``Exec=<exec_path>`` (left alone if there is no executable)
    - A relative ``Icon=`` value is replaced by the first file under
      ``install_dir`` whose name starts with it (left alone if none matches)

    Args:
        content: Original desktop file text
        exec_path: Installed main executable, or None
        install_dir: Installation directory to resolve icons in

    Returns:
        Rewritten desktop file text
    """
    lines = content.splitlines()

    icon_value = next((line.partition("=")[2].strip() for line in lines if line.startswith("Icon=")), "")
    icon_path = None
    if icon_value and not icon_value.startswith("/"):
        icon_path = find_icon_by_name(install_dir, icon_value)
        if icon_path:
            logger.debug(f"Resolved icon {icon_value!r} to {icon_path}")

    rewritten = []
    for line in lines:
        if line.startswith("Exec=") and exec_path is not None:
            line = f"Exec={exec_path}"
        elif line.startswith("Icon=") and icon_path is not None and line.partition("=")[2].strip() == icon_value:
            line = f"Icon={icon_path}"
        rewritten.append(line)

    return "\n".join(rewritten) + "\n"


def build_desktop_entry(app_name: str, exec_path: Path | None, icon: str, category: str) -> str:
    """Minimal launcher for archives that ship no desktop entry."""
    return (
        "[Desktop Entry]\n"
        "Type=Application\n"
        f"Name={display_name(app_name)}\n"
        f"Exec={exec_path or ''}\n"
        f"Icon={icon}\n"
        "Terminal=false\n"
        f"Categories={category}\n"
    )


def install_desktop_entry(
    destination: Path,
    app_name: str,
    install_dir: Path,
    exec_path: Path | None,
    shipped_entry: Path | None,
    icon: Path | None,
    fallback_icon: str,
    category: str,
) -> Path:
    """
    Write the launcher entry for an installation and mark it executable.

    Args:
        destination: Target ``.desktop`` path (replaced if present)
        app_name: Application identifier
        install_dir: Installation directory
        exec_path: Installed main executable, or None
        shipped_entry: Desktop entry shipped in the archive, or None
        icon: Installed icon file for a fabricated entry, or None
        fallback_icon: Icon theme name used when there is no icon file
        category: ``Categories=`` value for a fabricated entry

    Returns:
        ``destination``
    """
    destination.parent.mkdir(parents=True, exist_ok=True)

    if shipped_entry is not None:
        logger.info(f"Adapting shipped desktop file: {shipped_entry}")
        shutil.copyfile(shipped_entry, destination)
        content = destination.read_text(encoding="utf-8", errors="replace")
        destination.write_text(rewrite_desktop_entry(content, exec_path, install_dir), encoding="utf-8")
    else:
        logger.info(f"Creating minimal desktop file for {app_name}")
        icon_value = str(icon) if icon is not None else fallback_icon
        destination.write_text(build_desktop_entry(app_name, exec_path, icon_value, category), encoding="utf-8")

    # Launchers are expected to be executable
    destination.chmod(destination.stat().st_mode | DESKTOP_ENTRY_MODE_BITS)
    return destination
