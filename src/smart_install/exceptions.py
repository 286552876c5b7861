"""Smart-install exceptions.

Every failure the operator can see maps to one class here, so the CLI can
turn it into a specific message and exit status.
"""


class SmartInstallError(Exception):
    """Base exception for install/uninstall operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (file paths, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ConfigError(SmartInstallError):
    """Configuration file is unreadable or invalid."""


class InstallError(SmartInstallError):
    """Installation failed."""


class ArchiveNotFoundError(InstallError):
    """Archive path does not exist or is not a file."""


class UnsupportedArchiveError(InstallError):
    """Archive extension is not one we know how to extract."""


class ExtractionError(InstallError):
    """Archive could not be extracted."""


class InstallAbortedError(SmartInstallError):
    """Operator declined to continue. Not a failure."""


class SourceCodeDetectedError(SmartInstallError):
    """Archive contains source code that must be compiled manually."""

    def __init__(self, indicators: list[str], context: dict | None = None):
        super().__init__(
            "This archive appears to contain source code requiring manual compilation.\n"
            f"Found indicators: {', '.join(indicators)}",
            context=context,
        )
        self.indicators = indicators


class UninstallError(SmartInstallError):
    """Uninstallation failed."""


class InstallationNotFoundError(UninstallError):
    """No live installation matches the requested name."""


class PartialUninstallError(UninstallError):
    """Some recorded items could not be removed.

    Everything removable was still removed and the record archived; the
    summary lists what was left behind.
    """

    def __init__(self, summary, context: dict | None = None):
        failed = "\n".join(f"  - {item}" for item in summary.failed)
        super().__init__(f"Some items could not be removed:\n{failed}", context=context)
        self.summary = summary
