"""Protocols for the host collaborators the engine drives but does not implement.

The engine only needs these interfaces. ``smart_install.host`` provides the
default implementations (tarfile, click prompts, notify-send,
update-desktop-database, ELF sniffing); tests provide scripted fakes.
"""

from pathlib import Path
from typing import Protocol


class ArchiveExtractor(Protocol):
    """Extracts an archive of a supported type into a directory."""

    def supports(self, archive_path: Path) -> bool:
        """Return True if the archive's type can be extracted."""
        ...

    def extract(self, archive_path: Path, target_dir: Path) -> None:
        """Extract ``archive_path`` into ``target_dir`` (which already exists).

        Raises:
            ExtractionError: If the archive is corrupt or unreadable
        """
        ...


class Prompter(Protocol):
    """Asks the operator questions. Every call blocks until answered."""

    def ask_text(self, prompt: str, default: str) -> str | None:
        """Free-text input. None means the dialog was dismissed."""
        ...

    def choose(self, prompt: str, options: list[tuple[str, str]]) -> str | None:
        """Single choice among ``(tag, label)`` pairs. Returns the tag, or None."""
        ...

    def confirm(self, prompt: str) -> bool:
        """Yes/no question."""
        ...

    def info(self, message: str) -> None:
        """Informational message box."""
        ...

    def warning(self, message: str) -> None:
        """Warning message box."""
        ...


class Notifier(Protocol):
    """Desktop notifications. Implementations must never raise."""

    def notify(self, summary: str, body: str, urgency: str = "normal", icon: str | None = None) -> None: ...


class DesktopDatabase(Protocol):
    """Desktop-menu cache refresh. Implementations must never raise."""

    def refresh(self, desktop_dir: Path) -> None: ...


class BinaryDetector(Protocol):
    """Decides whether an executable file is a native binary (not a script or library)."""

    def is_native_binary(self, path: Path) -> bool: ...
