"""smart-install - install pre-compiled tarballs as desktop applications, and remove them again.

Public API exports. Host collaborators (prompting, notifications, extraction)
are injected by callers; see protocols.py and host.py.
"""

from .config import InstallConfig
from .config import load_config
from .conflicts import ConflictResolution
from .conflicts import ConflictScanner
from .conflicts import ConflictScanResult
from .discovery import PayloadResources
from .discovery import discover_payload
from .exceptions import ArchiveNotFoundError
from .exceptions import ConfigError
from .exceptions import ExtractionError
from .exceptions import InstallAbortedError
from .exceptions import InstallationNotFoundError
from .exceptions import InstallError
from .exceptions import PartialUninstallError
from .exceptions import SmartInstallError
from .exceptions import SourceCodeDetectedError
from .exceptions import UninstallError
from .exceptions import UnsupportedArchiveError
from .index import InstalledApplication
from .index import find_installation
from .index import find_record
from .index import list_live_installations
from .installer import InstallResult
from .installer import install_archive
from .layout import detect_source_indicators
from .layout import resolve_logical_root
from .naming import derive_app_name
from .protocols import ArchiveExtractor
from .protocols import BinaryDetector
from .protocols import DesktopDatabase
from .protocols import Notifier
from .protocols import Prompter
from .record import InstallRecord
from .record import InstallRecordData
from .record import parse_record
from .uninstaller import RemovalSummary
from .uninstaller import describe_removal
from .uninstaller import uninstall_application
from .uninstaller import uninstall_record

__all__ = [
    # Configuration
    "InstallConfig",
    "load_config",
    # Naming and layout
    "derive_app_name",
    "resolve_logical_root",
    "detect_source_indicators",
    "PayloadResources",
    "discover_payload",
    # Conflicts
    "ConflictScanner",
    "ConflictScanResult",
    "ConflictResolution",
    # Records
    "InstallRecord",
    "InstallRecordData",
    "parse_record",
    "InstalledApplication",
    "list_live_installations",
    "find_installation",
    "find_record",
    # Install / uninstall
    "install_archive",
    "InstallResult",
    "uninstall_application",
    "uninstall_record",
    "describe_removal",
    "RemovalSummary",
    # Collaborator protocols
    "ArchiveExtractor",
    "BinaryDetector",
    "DesktopDatabase",
    "Notifier",
    "Prompter",
    # Exceptions
    "SmartInstallError",
    "ConfigError",
    "InstallError",
    "ArchiveNotFoundError",
    "UnsupportedArchiveError",
    "ExtractionError",
    "InstallAbortedError",
    "SourceCodeDetectedError",
    "UninstallError",
    "InstallationNotFoundError",
    "PartialUninstallError",
]

__version__ = "0.1.0"
