"""Tests for the smart-install command line."""

import json
import shutil

from click.testing import CliRunner
from helpers import FakePrompter
from helpers import RecordingDesktopDatabase
from helpers import RecordingNotifier
from helpers import make_tarball
from smart_install import install_archive
from smart_install.cli import cli


def _obj(config, prompter=None) -> dict:
    return {
        "config": config,
        "prompter": prompter or FakePrompter(),
        "notifier": RecordingNotifier(),
        "desktop_database": RecordingDesktopDatabase(),
    }


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"], obj={})
        assert result.exit_code == 0
        assert "install" in result.output
        assert "uninstall" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"], obj={})
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_invalid_config_file(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text("[paths\n")

        result = CliRunner().invoke(cli, ["--config", str(config_file), "list"], obj={})

        assert result.exit_code == 1
        assert "Invalid TOML" in result.output


class TestInstallCommand:
    def test_install(self, config, demo_archive):
        obj = _obj(config)

        result = CliRunner().invoke(cli, ["install", str(demo_archive)], obj=obj)

        assert result.exit_code == 0, result.output
        assert "Installation complete!" in result.output
        assert "Application: Demo" in result.output
        assert (config.primary_install_dir / "demo").is_dir()
        assert obj["desktop_database"].refreshed == [config.desktop_dir]

    def test_install_with_search_term(self, config, demo_archive):
        prompter = FakePrompter()

        result = CliRunner().invoke(cli, ["install", str(demo_archive), "-s", "demo"], obj=_obj(config, prompter))

        assert result.exit_code == 0
        assert prompter.questions == []

    def test_install_missing_archive(self, config, tmp_path):
        result = CliRunner().invoke(cli, ["install", str(tmp_path / "nope.tar.gz")], obj=_obj(config))

        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_install_source_archive(self, config, downloads):
        archive = make_tarball(downloads, "tool-1.0.tar.gz", {"tool-1.0/configure": ("#!/bin/sh\n", 0o755)})

        result = CliRunner().invoke(cli, ["install", str(archive)], obj=_obj(config))

        assert result.exit_code == 4
        assert "configure" in result.output
        assert "compile this software manually" in result.output

    def test_install_aborted(self, config, demo_archive):
        (config.primary_install_dir / "demo-old").mkdir(parents=True)

        result = CliRunner().invoke(
            cli, ["install", str(demo_archive)], obj=_obj(config, FakePrompter(choice="abort"))
        )

        assert result.exit_code == 3
        assert "Installation cancelled." in result.output


class TestListCommand:
    def test_list_empty(self, config):
        result = CliRunner().invoke(cli, ["list"], obj=_obj(config))

        assert result.exit_code == 0
        assert "No applications found." in result.output

    def test_list_installed(self, config, demo_archive):
        installed = install_archive(demo_archive, config, FakePrompter())

        result = CliRunner().invoke(cli, ["list"], obj=_obj(config))

        assert result.exit_code == 0
        assert "1. Demo" in result.output
        assert f"Location: {installed.install_dir}" in result.output

    def test_list_json(self, config, demo_archive):
        installed = install_archive(demo_archive, config, FakePrompter())

        result = CliRunner().invoke(cli, ["list", "--json"], obj=_obj(config))

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert len(data) == 1
        assert data[0]["name"] == "demo"
        assert data[0]["install_dir"] == str(installed.install_dir)


class TestUninstallCommand:
    def test_uninstall_yes(self, config, demo_archive):
        installed = install_archive(demo_archive, config, FakePrompter())
        prompter = FakePrompter()
        obj = _obj(config, prompter)

        result = CliRunner().invoke(cli, ["uninstall", "demo", "--yes"], obj=obj)

        assert result.exit_code == 0, result.output
        assert "=== Removal Summary ===" in result.output
        assert "Successfully uninstalled demo" in result.output
        assert not installed.install_dir.exists()
        assert prompter.questions == []
        assert obj["notifier"].notifications[-1][0] == "Smart Uninstall"

    def test_uninstall_confirmed(self, config, demo_archive):
        installed = install_archive(demo_archive, config, FakePrompter())
        prompter = FakePrompter(confirm=True)

        result = CliRunner().invoke(cli, ["uninstall", "demo"], obj=_obj(config, prompter))

        assert result.exit_code == 0
        assert str(installed.install_dir) in prompter.questions[-1]
        assert not installed.install_dir.exists()

    def test_uninstall_declined(self, config, demo_archive):
        installed = install_archive(demo_archive, config, FakePrompter())

        result = CliRunner().invoke(cli, ["uninstall", "demo"], obj=_obj(config, FakePrompter(confirm=False)))

        assert result.exit_code == 3
        assert "Uninstall cancelled." in result.output
        assert installed.install_dir.exists()

    def test_uninstall_not_found(self, config):
        result = CliRunner().invoke(cli, ["uninstall", "ghost", "--yes"], obj=_obj(config))

        assert result.exit_code == 5
        assert "Application 'ghost' not found." in result.output

    def test_uninstall_pick_interactively(self, config, demo_archive):
        installed = install_archive(demo_archive, config, FakePrompter())
        prompter = FakePrompter(choice="demo")

        result = CliRunner().invoke(cli, ["uninstall"], obj=_obj(config, prompter))

        assert result.exit_code == 0
        assert prompter.questions[0] == "Select an application to uninstall:"
        assert not installed.install_dir.exists()

    def test_uninstall_pick_dismissed(self, config, demo_archive):
        installed = install_archive(demo_archive, config, FakePrompter())

        result = CliRunner().invoke(cli, ["uninstall"], obj=_obj(config, FakePrompter(choice=None)))

        assert result.exit_code == 3
        assert installed.install_dir.exists()

    def test_uninstall_nothing_installed(self, config):
        prompter = FakePrompter()

        result = CliRunner().invoke(cli, ["uninstall"], obj=_obj(config, prompter))

        assert result.exit_code == 0
        assert "No applications installed" in prompter.messages[0]

    def test_uninstall_after_directory_removed_by_hand(self, config, demo_archive):
        installed = install_archive(demo_archive, config, FakePrompter())
        shutil.rmtree(installed.install_dir)

        result = CliRunner().invoke(cli, ["uninstall", "demo", "--yes"], obj=_obj(config))

        assert result.exit_code == 0, result.output
        assert "Already gone:" in result.output
        assert not (config.bin_dir / "demo").is_symlink()
        assert not (config.desktop_dir / "demo.desktop").exists()

        result = CliRunner().invoke(cli, ["uninstall", "demo", "--yes"], obj=_obj(config))
        assert result.exit_code == 5
