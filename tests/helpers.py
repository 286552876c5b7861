"""Test doubles for host collaborators and tarball builders shared by the test modules."""

import io
import tarfile
from pathlib import Path

# Minimal little-endian ELF header with e_type = ET_EXEC
ELF_HEADER = b"\x7fELF\x02\x01\x01" + b"\x00" * 9 + b"\x02\x00"
ELF_BINARY = ELF_HEADER + b"\x00" * 64


class FakePrompter:
    """Scripted operator answers; records every question asked."""

    def __init__(self, search_term: str | None = None, choice: str | None = None, confirm: bool = True):
        self.search_term = search_term
        self.choice = choice
        self.confirm_answer = confirm
        self.questions: list[str] = []
        self.warnings: list[str] = []
        self.messages: list[str] = []

    def ask_text(self, prompt: str, default: str) -> str | None:
        self.questions.append(prompt)
        return default if self.search_term is None else self.search_term

    def choose(self, prompt: str, options: list[tuple[str, str]]) -> str | None:
        self.questions.append(prompt)
        return self.choice

    def confirm(self, prompt: str) -> bool:
        self.questions.append(prompt)
        return self.confirm_answer

    def info(self, message: str) -> None:
        self.messages.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)


class RecordingNotifier:
    def __init__(self):
        self.notifications: list[tuple[str, str]] = []

    def notify(self, summary: str, body: str, urgency: str = "normal", icon: str | None = None) -> None:
        self.notifications.append((summary, body))


class RecordingDesktopDatabase:
    def __init__(self):
        self.refreshed: list[Path] = []

    def refresh(self, desktop_dir: Path) -> None:
        self.refreshed.append(desktop_dir)


def make_tarball(directory: Path, name: str, files: dict[str, bytes | str | tuple], mode: str = "w:gz") -> Path:
    """Build a tarball from ``{member: content}`` or ``{member: (content, mode)}``."""
    archive_path = directory / name
    with tarfile.open(archive_path, mode) as archive:
        for member, spec in files.items():
            content, file_mode = spec if isinstance(spec, tuple) else (spec, 0o644)
            data = content.encode() if isinstance(content, str) else content
            info = tarfile.TarInfo(member)
            info.size = len(data)
            info.mode = file_mode
            archive.addfile(info, io.BytesIO(data))
    return archive_path


def binary_app_files(top: str = "demo-1.0") -> dict[str, bytes | str | tuple]:
    """A typical pre-built payload: ELF binary, helper script, shared library, icon."""
    return {
        f"{top}/demo": (ELF_BINARY, 0o755),
        f"{top}/run.sh": ("#!/bin/sh\nexec ./demo\n", 0o755),
        f"{top}/lib/libdemo.so.1": (ELF_BINARY, 0o755),
        f"{top}/icons/demo.png": b"\x89PNG\r\n\x1a\n",
        f"{top}/README": "Demo application\n",
    }
