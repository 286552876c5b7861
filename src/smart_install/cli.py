"""
smart-install - command line entrypoint.

Usage::

    smart-install install ~/Downloads/firefox-128.0.tar.gz
    smart-install list
    smart-install uninstall firefox
    smart-install uninstall            # pick from the installed list

Exit codes: 0 success, 1 failure, 3 cancelled by the operator,
4 source code detected, 5 application not found.
"""

import json
import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import InstallConfig
from .config import load_config
from .desktop import display_name
from .exceptions import ConfigError
from .exceptions import InstallAbortedError
from .exceptions import InstallationNotFoundError
from .exceptions import PartialUninstallError
from .exceptions import SmartInstallError
from .exceptions import SourceCodeDetectedError
from .host import AssumeYesPrompter
from .host import ClickPrompter
from .host import NotifySendNotifier
from .host import UpdateDesktopDatabase
from .index import find_record
from .index import list_live_installations
from .installer import install_archive
from .record import parse_record
from .uninstaller import RemovalSummary
from .uninstaller import describe_removal
from .uninstaller import uninstall_application

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_ABORTED = 3
EXIT_SOURCE_DETECTED = 4
EXIT_NOT_FOUND = 5


def _config(ctx: click.Context) -> InstallConfig:
    """Config from the context (tests inject one), else loaded from disk."""
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = load_config(ctx.obj.get("config_path"))
        except ConfigError as e:
            click.secho(f"Error: {e.message}", fg="red", err=True)
            sys.exit(EXIT_FAILURE)
    return ctx.obj["config"]


def _collaborator(ctx: click.Context, name: str, factory):
    if name not in ctx.obj:
        ctx.obj[name] = factory()
    return ctx.obj[name]


@click.group()
@click.version_option(version=__version__, prog_name="smart-install")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to config.toml (default: $XDG_CONFIG_HOME/smart-install/config.toml).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: str | None) -> None:
    """Smart Install - install pre-compiled tarballs as desktop applications."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Install ────────────────────────────────────────────────────


@cli.command()
@click.argument("archive", type=click.Path(path_type=Path))
@click.option("--search-term", "-s", default=None, help="Conflict search term (default: ask, prefilled with the app name).")
@click.pass_context
def install(ctx: click.Context, archive: Path, search_term: str | None) -> None:
    """Install a pre-compiled application from ARCHIVE (.tar.gz, .tgz, .tar.xz, .txz, .tar)."""
    config = _config(ctx)
    prompter = _collaborator(ctx, "prompter", ClickPrompter)

    kwargs = {}
    if "detector" in ctx.obj:
        kwargs["detector"] = ctx.obj["detector"]
    if "extractor" in ctx.obj:
        kwargs["extractor"] = ctx.obj["extractor"]

    try:
        result = install_archive(
            archive,
            config,
            prompter,
            notifier=_collaborator(ctx, "notifier", NotifySendNotifier),
            desktop_database=_collaborator(ctx, "desktop_database", UpdateDesktopDatabase),
            search_term=search_term,
            **kwargs,
        )
    except SourceCodeDetectedError as e:
        click.secho(f"{e.message}\n\nInstallation halted. Please compile this software manually.", fg="red", err=True)
        sys.exit(EXIT_SOURCE_DETECTED)
    except InstallAbortedError as e:
        click.echo(e.message)
        sys.exit(EXIT_ABORTED)
    except (SmartInstallError, OSError) as e:
        click.secho(f"Error: {getattr(e, 'message', e)}", fg="red", err=True)
        sys.exit(EXIT_FAILURE)

    click.secho("Installation complete!", fg="green")
    click.echo(f"\nApplication: {display_name(result.app_name)}")
    click.echo(f"Location: {result.install_dir}")
    click.echo(f"Log file: {result.record_path}")
    click.echo("\nThe application should now appear in your application menu.")


# ── List ───────────────────────────────────────────────────────


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_installed(ctx: click.Context, as_json: bool) -> None:
    """List applications installed by smart-install."""
    installations = list_live_installations(_config(ctx))

    if as_json:
        click.echo(json.dumps([app.model_dump(mode="json") for app in installations], indent=2))
        return

    click.echo("Applications installed by Smart Install:")
    click.echo("=" * 41)
    click.echo()

    if not installations:
        click.echo("No applications found.")
        return

    for count, app in enumerate(installations, start=1):
        click.echo(f"{count}. {display_name(app.name)}")
        click.echo(f"   Location: {app.install_dir}")
        click.echo(f"   Installed: {app.timestamp}")
        click.echo(f"   Log: {app.record_path}")
        click.echo()


# ── Uninstall ──────────────────────────────────────────────────


def _print_summary(summary: RemovalSummary) -> None:
    click.echo("\n=== Removal Summary ===")
    if summary.removed:
        click.echo("Successfully removed:")
        for item in summary.removed:
            click.echo(f"  • {item}")
    if summary.skipped:
        click.echo("Already gone:")
        for item in summary.skipped:
            click.echo(f"  • {item}")
    if summary.failed:
        click.echo("Failed to remove:")
        for item in summary.failed:
            click.echo(f"  • {item}")


def _report_not_found(app: str) -> None:
    click.secho(f"Error: Application '{app}' not found.", fg="red", err=True)
    click.echo("Use 'smart-install list' to see installed applications.", err=True)
    sys.exit(EXIT_NOT_FOUND)


@cli.command()
@click.argument("app", required=False)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def uninstall(ctx: click.Context, app: str | None, yes: bool) -> None:
    """Uninstall APP, or pick one interactively when APP is omitted."""
    config = _config(ctx)
    prompter = _collaborator(ctx, "prompter", AssumeYesPrompter if yes else ClickPrompter)

    if app is None:
        installations = list_live_installations(config)
        if not installations:
            prompter.info(
                "No applications installed by Smart Install were found.\n\n"
                "Either no applications have been installed, or they have already been removed."
            )
            return
        options = [
            (i.name, f"{display_name(i.name)} ({i.install_dir.name}) - installed {i.timestamp}") for i in installations
        ]
        app = prompter.choose("Select an application to uninstall:", options)
        if not app:
            click.echo("Uninstall cancelled.")
            sys.exit(EXIT_ABORTED)

    record_path = find_record(app, config)
    if record_path is None:
        _report_not_found(app)
    record = parse_record(record_path)
    name = record.app_name or app

    if not yes:
        paths = "\n".join(f"• {path}" for path in describe_removal(record, config))
        question = (
            f"Are you sure you want to uninstall {display_name(name)}?\n\n"
            f"The following will be removed:\n{paths}\n\nThis action cannot be undone."
        )
        if not prompter.confirm(question):
            click.echo("Uninstall cancelled.")
            sys.exit(EXIT_ABORTED)

    click.echo(f"Uninstalling: {name}")
    notifier = _collaborator(ctx, "notifier", NotifySendNotifier)
    try:
        summary = uninstall_application(
            name,
            config,
            desktop_database=_collaborator(ctx, "desktop_database", UpdateDesktopDatabase),
        )
    except InstallationNotFoundError:
        _report_not_found(app)
    except PartialUninstallError as e:
        _print_summary(e.summary)
        click.secho("\nWarning: Some items could not be removed. Check permissions and try again.", fg="yellow", err=True)
        sys.exit(EXIT_FAILURE)
    except OSError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_FAILURE)

    _print_summary(summary)
    click.secho(f"\nSuccessfully uninstalled {name}", fg="green")
    notifier.notify("Smart Uninstall", f"{display_name(name)} has been uninstalled", icon="package-remove")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
