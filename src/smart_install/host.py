"""Default host collaborators for a freedesktop Linux session.

Cosmetic collaborators (notifications, desktop database refresh) log and
swallow their failures; extraction failures are raised as ExtractionError.
"""

import logging
import re
import shutil
import subprocess
import tarfile
from pathlib import Path

import click

from .exceptions import ExtractionError

logger = logging.getLogger(__name__)

# Extension -> tarfile mode
TAR_MODES = {
    ".tar.gz": "r:gz",
    ".tgz": "r:gz",
    ".tar.xz": "r:xz",
    ".txz": "r:xz",
    ".tar": "r:",
}

ELF_MAGIC = b"\x7fELF"
# e_type values for executables and position-independent executables
ELF_EXECUTABLE_TYPES = {2, 3}
_SHARED_LIBRARY = re.compile(r"\.so(\.\d+)*$")


class TarballExtractor:
    """Extracts gzip, xz and plain tarballs with the standard tarfile module."""

    def _mode(self, archive_path: Path) -> str | None:
        name = archive_path.name.lower()
        for extension, mode in TAR_MODES.items():
            if name.endswith(extension):
                return mode
        return None

    def supports(self, archive_path: Path) -> bool:
        return self._mode(archive_path) is not None

    def extract(self, archive_path: Path, target_dir: Path) -> None:
        mode = self._mode(archive_path)
        if mode is None:
            raise ExtractionError(f"Unsupported archive format: {archive_path}", context={"archive": str(archive_path)})

        logger.info(f"Extracting {archive_path} to {target_dir}")
        try:
            with tarfile.open(archive_path, mode) as archive:
                # "tar" filter keeps permission bits but refuses paths outside target_dir
                archive.extractall(target_dir, filter="tar")
        except (tarfile.TarError, OSError, EOFError) as e:
            raise ExtractionError(
                f"Failed to extract archive {archive_path}: {e}", context={"archive": str(archive_path)}
            ) from e


class ElfBinaryDetector:
    """Accepts ELF executables; rejects scripts, shared libraries and data files."""

    def is_native_binary(self, path: Path) -> bool:
        if _SHARED_LIBRARY.search(path.name):
            return False
        try:
            with open(path, "rb") as f:
                header = f.read(18)
        except OSError as e:
            logger.debug(f"Cannot read {path}: {e}")
            return False

        if len(header) < 18 or not header.startswith(ELF_MAGIC):
            return False

        # e_type is a 16-bit field at offset 16; byte order from EI_DATA (1 = little endian)
        byteorder = "little" if header[5] == 1 else "big"
        return int.from_bytes(header[16:18], byteorder) in ELF_EXECUTABLE_TYPES


class ClickPrompter:
    """Terminal prompts via click. Ctrl-C / EOF count as a dismissed dialog."""

    def ask_text(self, prompt: str, default: str) -> str | None:
        try:
            return click.prompt(prompt, default=default, show_default=True)
        except click.Abort:
            return None

    def choose(self, prompt: str, options: list[tuple[str, str]]) -> str | None:
        click.echo(prompt)
        for index, (_, label) in enumerate(options, start=1):
            click.echo(f"  {index}. {label}")
        try:
            choice = click.prompt("Choice", type=click.IntRange(1, len(options)))
        except click.Abort:
            return None
        return options[choice - 1][0]

    def confirm(self, prompt: str) -> bool:
        try:
            return click.confirm(prompt, default=False)
        except click.Abort:
            return False

    def info(self, message: str) -> None:
        click.echo(message)

    def warning(self, message: str) -> None:
        click.secho(message, fg="yellow", err=True)


class AssumeYesPrompter(ClickPrompter):
    """Answers yes to every confirmation without asking."""

    def confirm(self, prompt: str) -> bool:
        logger.debug(f"Assuming yes: {prompt}")
        return True


class NotifySendNotifier:
    """Desktop notifications through ``notify-send``."""

    def __init__(self, app_name: str = "Smart Install"):
        self.app_name = app_name

    def notify(self, summary: str, body: str, urgency: str = "normal", icon: str | None = None) -> None:
        if not shutil.which("notify-send"):
            logger.debug("notify-send not available, skipping notification")
            return

        command = ["notify-send", "-a", self.app_name, "-u", urgency]
        if icon:
            command += ["-i", icon]
        command += [summary, body]

        try:
            subprocess.run(command, check=False, capture_output=True)
        except OSError as e:
            logger.warning(f"Notification failed: {e}")


class UpdateDesktopDatabase:
    """Refreshes the desktop menu cache with ``update-desktop-database``."""

    def refresh(self, desktop_dir: Path) -> None:
        if not desktop_dir.is_dir():
            logger.warning(f"Cannot refresh desktop database, not a directory: {desktop_dir}")
            return

        if not shutil.which("update-desktop-database"):
            logger.debug("update-desktop-database not available, skipping refresh")
            return

        try:
            subprocess.run(["update-desktop-database", str(desktop_dir)], check=False, capture_output=True)
            logger.info(f"Desktop database refreshed: {desktop_dir}")
        except OSError as e:
            logger.warning(f"update-desktop-database failed: {e}")
