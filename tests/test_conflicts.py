"""Tests for conflict scanning and the replace resolution."""

from smart_install import ConflictScanner
from smart_install.conflicts import remove_conflicts


def test_no_conflicts_in_empty_home(config):
    result = ConflictScanner(config).scan("demo")

    assert not result.has_conflicts()
    assert result.search_term == "demo"


def test_matches_directories_case_insensitively(config, home):
    (home / ".local" / "share" / "Demo-Old").mkdir(parents=True)
    (home / "Applications" / "tools" / "demo").mkdir(parents=True)

    result = ConflictScanner(config).scan("DEMO")

    assert result.directories == [
        home / ".local" / "share" / "Demo-Old",
        home / "Applications" / "tools" / "demo",
    ]


def test_depth_is_limited_to_two_levels(config, home):
    (home / "Applications" / "a" / "b" / "demo").mkdir(parents=True)

    assert ConflictScanner(config).scan("demo").directories == []


def test_nested_matches_collapse_into_parent(config, home):
    (home / ".local" / "share" / "demo" / "demo-data").mkdir(parents=True)

    result = ConflictScanner(config).scan("demo")

    assert result.directories == [home / ".local" / "share" / "demo"]


def test_bookkeeping_directories_are_never_conflicts(config, home):
    """A term matching the desktop or log directory must not offer them for deletion."""
    config.desktop_dir.mkdir(parents=True)
    config.log_dir.mkdir(parents=True)

    assert ConflictScanner(config).scan("applications").directories == []
    assert ConflictScanner(config).scan("logs").directories == []


def test_files_are_not_directory_conflicts(config, home):
    (home / "bin").mkdir()
    (home / "bin" / "demo").write_text("#!/bin/sh")

    assert ConflictScanner(config).scan("demo").directories == []


def test_matches_desktop_entries(config):
    config.desktop_dir.mkdir(parents=True)
    (config.desktop_dir / "org.demo.Viewer.desktop").write_text("[Desktop Entry]")
    (config.desktop_dir / "other.desktop").write_text("[Desktop Entry]")

    result = ConflictScanner(config).scan("demo")

    assert result.desktop_entries == [config.desktop_dir / "org.demo.Viewer.desktop"]
    assert result.has_conflicts()


def test_remove_conflicts_deletes_matches_and_their_desktop_entries(config, home):
    old = home / ".local" / "share" / "demo-old"
    old.mkdir(parents=True)
    (old / "demo").write_text("bin")
    config.desktop_dir.mkdir(parents=True)
    (config.desktop_dir / "demo-old.desktop").write_text("[Desktop Entry]")
    (config.desktop_dir / "unrelated.desktop").write_text("[Desktop Entry]")

    result = ConflictScanner(config).scan("demo")
    removed = remove_conflicts(result, config)

    assert not old.exists()
    assert not (config.desktop_dir / "demo-old.desktop").exists()
    assert (config.desktop_dir / "unrelated.desktop").exists()
    assert old in removed
