"""Install configuration - paths and token lists injected into every component.

Nothing in the engine reads a module-level path: callers build an
InstallConfig (defaults are rooted at a home directory) and pass it in. Tests
root it at a temporary directory.
"""

import logging
import os
import tempfile
import tomllib
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_INDICATORS = [
    "configure",
    "configure.ac",
    "Makefile.in",
    "Makefile.am",
    "CMakeLists.txt",
    "meson.build",
    "setup.py",
    "Cargo.toml",
    "go.mod",
]

DEFAULT_ARCHIVE_EXTENSIONS = [".tar.gz", ".tar.xz", ".tgz", ".txz"]

DEFAULT_ARCHITECTURE_TOKENS = ["x86_64", "x86-64", "amd64", "x64", "i686", "i386", "arm64", "aarch64"]

DEFAULT_OS_TOKENS = ["linux", "gnu", "win", "windows", "macos", "darwin"]

# Regular expression fragments, matched case-insensitively
DEFAULT_RELEASE_TOKENS = ["release", "stable", "beta", "alpha", "rc[0-9]*"]


class InstallConfig(BaseModel):
    """
    Locations and heuristics used by install and uninstall.

    Path layout (defaults, relative to home):
    - install_locations: searched for conflicts, in order
    - primary_install_dir: where payloads are copied
    - desktop_dir: where launcher entries go
    - bin_dir: where terminal symlinks go
    - log_dir: the install record store
    """

    model_config = ConfigDict(frozen=True)

    install_locations: list[Path]
    primary_install_dir: Path
    desktop_dir: Path
    bin_dir: Path
    log_dir: Path
    tmp_base: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))

    source_indicators: list[str] = Field(default_factory=lambda: list(DEFAULT_SOURCE_INDICATORS))
    archive_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_ARCHIVE_EXTENSIONS))
    architecture_tokens: list[str] = Field(default_factory=lambda: list(DEFAULT_ARCHITECTURE_TOKENS))
    os_tokens: list[str] = Field(default_factory=lambda: list(DEFAULT_OS_TOKENS))
    release_tokens: list[str] = Field(default_factory=lambda: list(DEFAULT_RELEASE_TOKENS))

    fallback_icon: str = "application-x-executable"
    desktop_category: str = "Utility;"
    rollback_on_failure: bool = False

    @classmethod
    def default(cls, home: Path | None = None) -> "InstallConfig":
        """Build the default layout under ``home`` (the user's home if omitted)."""
        home = home or Path.home()
        share = home / ".local" / "share"
        return cls(
            install_locations=[share, home / "Applications", home / ".local" / "bin", home / "bin"],
            primary_install_dir=share,
            desktop_dir=share / "applications",
            bin_dir=home / ".local" / "bin",
            log_dir=share / "smart-install-logs",
        )

    @classmethod
    def from_toml(cls, config_path: Path, home: Path | None = None) -> "InstallConfig":
        """
        Load configuration from a TOML file, overlaying the defaults.

        Recognised tables:

            [paths]
            install_locations = ["~/.local/share", "~/Applications"]
            primary_install_dir = "~/.local/share"
            desktop_dir = "~/.local/share/applications"
            bin_dir = "~/.local/bin"
            log_dir = "~/.local/share/smart-install-logs"
            tmp_base = "/tmp"

            [install]
            source_indicators = ["CMakeLists.txt", ...]
            fallback_icon = "application-x-executable"
            desktop_category = "Utility;"
            rollback_on_failure = false

        Args:
            config_path: Path to the TOML file
            home: Home directory used for defaults and ``~`` expansion

        Returns:
            InstallConfig instance

        Raises:
            ConfigError: If the file is missing, not valid TOML, or has invalid values
        """
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}", context={"path": str(config_path)})

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}", context={"path": str(config_path)}) from e

        home = home or Path.home()
        values = cls.default(home).model_dump()

        for key, value in data.get("paths", {}).items():
            if key == "install_locations":
                values[key] = [_expand(item, home) for item in value]
            else:
                values[key] = _expand(value, home)
        values.update(data.get("install", {}))

        try:
            config = cls.model_validate(values)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_path}: {e}", context={"path": str(config_path)}) from e

        logger.debug(f"Loaded configuration from {config_path}")
        return config


def _expand(value: str, home: Path) -> Path:
    if value == "~" or value.startswith("~/"):
        return home / value[2:]
    return Path(value)


def default_config_path() -> Path:
    """Location of the user config file ($XDG_CONFIG_HOME/smart-install/config.toml)."""
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "smart-install" / "config.toml"


def load_config(config_path: Path | None = None) -> InstallConfig:
    """Load an explicit config file, the user config file if present, or defaults."""
    if config_path is not None:
        return InstallConfig.from_toml(config_path)

    user_config = default_config_path()
    if user_config.exists():
        return InstallConfig.from_toml(user_config)

    return InstallConfig.default()
