"""Tests for record-driven uninstallation."""

import shutil

import pytest
from helpers import FakePrompter
from helpers import RecordingDesktopDatabase
from smart_install import InstallationNotFoundError
from smart_install import PartialUninstallError
from smart_install import install_archive
from smart_install import list_live_installations
from smart_install import parse_record
from smart_install import uninstall_application
from smart_install import uninstall_record
from smart_install.uninstaller import describe_removal


@pytest.fixture
def installed(config, demo_archive):
    return install_archive(demo_archive, config, FakePrompter())


def test_uninstall_removes_everything(config, installed):
    database = RecordingDesktopDatabase()

    summary = uninstall_application("demo", config, desktop_database=database)

    assert summary.succeeded()
    assert not installed.install_dir.exists()
    assert not (config.bin_dir / "demo").exists()
    assert not (config.bin_dir / "demo").is_symlink()
    assert not (config.desktop_dir / "demo.desktop").exists()
    assert f"Directory: {installed.install_dir}" in summary.removed
    assert f"Symlink: {config.bin_dir / 'demo'}" in summary.removed

    assert not installed.record_path.exists()
    assert summary.archived_record == installed.record_path.with_name(
        installed.record_path.name.replace(".log", ".removed.log")
    )
    assert summary.archived_record.exists()
    assert database.refreshed == [config.desktop_dir]
    assert list_live_installations(config) == []


def test_uninstall_twice_reports_not_found(config, installed):
    uninstall_application("demo", config)

    with pytest.raises(InstallationNotFoundError, match="Application 'demo' not found"):
        uninstall_application("demo", config)


def test_uninstall_is_case_insensitive(config, installed):
    uninstall_application("DEMO", config)

    assert not installed.install_dir.exists()


def test_uninstall_record_with_directory_removed_out_of_band(config, installed):
    shutil.rmtree(installed.install_dir)

    summary = uninstall_record(installed.record_path, config)

    assert f"Directory: {installed.install_dir}" in summary.skipped
    assert not (config.bin_dir / "demo").is_symlink()
    assert not (config.desktop_dir / "demo.desktop").exists()
    assert summary.archived_record.exists()


def test_replaced_symlink_is_left_alone(config, installed):
    link = config.bin_dir / "demo"
    link.unlink()
    link.write_text("user replaced this")

    summary = uninstall_application("demo", config)

    assert link.read_text() == "user replaced this"
    assert f"Symlink: {link}" in summary.skipped


def test_name_matched_desktop_entries_are_removed(config, installed):
    extra = config.desktop_dir / "demo-extra.desktop"
    extra.write_text("[Desktop Entry]\n")
    unrelated = config.desktop_dir / "other.desktop"
    unrelated.write_text("[Desktop Entry]\n")

    uninstall_application("demo", config)

    assert not extra.exists()
    assert unrelated.exists()


def test_partial_failure_still_archives_record(config, installed, monkeypatch):
    def fail_rmtree(path, *args, **kwargs):
        raise OSError("permission denied")

    monkeypatch.setattr("smart_install.uninstaller.shutil.rmtree", fail_rmtree)

    with pytest.raises(PartialUninstallError) as excinfo:
        uninstall_application("demo", config)

    summary = excinfo.value.summary
    assert f"Directory: {installed.install_dir}" in summary.failed
    assert f"Symlink: {config.bin_dir / 'demo'}" in summary.removed
    assert summary.archived_record.exists()
    assert "Some items could not be removed" in str(excinfo.value)
    # The directory is still there but its record is archived
    assert installed.install_dir.exists()
    assert list_live_installations(config) == []


def test_describe_removal(config, installed):
    record = parse_record(installed.record_path)

    paths = describe_removal(record, config)

    assert paths == [
        config.bin_dir / "demo",
        config.desktop_dir / "demo.desktop",
        installed.install_dir,
    ]


def test_uninstall_by_name_with_directory_removed_out_of_band(config, installed):
    shutil.rmtree(installed.install_dir)

    summary = uninstall_application("demo", config)

    assert f"Directory: {installed.install_dir}" in summary.skipped
    assert f"Symlink: {config.bin_dir / 'demo'}" in summary.removed
    assert not (config.bin_dir / "demo").is_symlink()
    assert not (config.desktop_dir / "demo.desktop").exists()
    assert summary.archived_record.exists()
    assert not installed.record_path.exists()

    with pytest.raises(InstallationNotFoundError):
        uninstall_application("demo", config)


def test_uninstall_with_nothing_left_reports_not_found(config, installed):
    shutil.rmtree(installed.install_dir)
    (config.bin_dir / "demo").unlink()
    (config.desktop_dir / "demo.desktop").unlink()

    with pytest.raises(InstallationNotFoundError):
        uninstall_application("demo", config)

    assert installed.record_path.exists()
