"""Shared fixtures: an isolated config rooted in tmp_path and a demo tarball."""

from pathlib import Path

import pytest
from helpers import binary_app_files
from helpers import make_tarball
from smart_install import InstallConfig


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def config(tmp_path: Path, home: Path) -> InstallConfig:
    return InstallConfig.default(home=home).model_copy(update={"tmp_base": tmp_path / "tmp"})


@pytest.fixture
def downloads(tmp_path: Path) -> Path:
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture
def demo_archive(downloads: Path) -> Path:
    return make_tarball(downloads, "demo-1.0-linux-x86_64.tar.gz", binary_app_files())
