"""globconf CLI — run providers, install projects and look up variables."""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from globconf import __version__
from globconf.errors import GlobconfError

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    log = logging.getLogger("globconf")
    log.handlers = [RichHandler(console=err_console, show_time=False, show_path=False)]
    log.setLevel(logging.DEBUG if verbose else logging.INFO)


def _fail(error: GlobconfError):
    err_console.print(f"[red]{escape(str(error))}[/]", highlight=False, soft_wrap=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--settings",
    "settings_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Settings file (default: $GLOBCONF_SETTINGS_FILE or ~/.globconf/settings.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.pass_context
def main(ctx: click.Context, settings_path: str | None, verbose: bool):
    """globconf — shared configuration for a System of build projects.

    A provider file declares a System and its variables and installs itself
    into the user package registry. Every project of the System then reads
    the same variables by name.
    """
    from globconf.settings import load_settings

    _setup_logging(verbose)
    try:
        ctx.obj = load_settings(settings_path)
    except GlobconfError as e:
        _fail(e)


# ── Provider ─────────────────────────────────────────────────────────


@main.command()
@click.argument("provider_path", type=click.Path(dir_okay=False))
@click.option("--install-as-symlink", is_flag=True, help="Register the provider's directory in the package registry")
@click.option("--uninstall", is_flag=True, help="Remove the System's registration")
@click.pass_obj
def run(settings, provider_path: str, install_as_symlink: bool, uninstall: bool):
    """Run a provider file directly (script mode).

    PROVIDER_PATH must be named <prefix><SYSTEM>Config.py or .yaml.
    """
    from globconf.context import Switches
    from globconf.provider import run_provider

    try:
        switches = Switches(install_as_symlink=install_as_symlink, uninstall=uninstall)
        context = run_provider(provider_path, switches=switches, settings=settings)
    except GlobconfError as e:
        _fail(e)

    console.print(
        f"[bold blue]globconf[/] — {context.system_name}: "
        f"{len(context.store)} variable(s) declared"
    )


# ── Install project ──────────────────────────────────────────────────


@main.command()
@click.argument("directory", type=click.Path(file_okay=False, exists=True))
@click.option("--install-as-symlink", is_flag=True, help="Register the provider's directory in the package registry")
@click.option("--allow-install", is_flag=True, hidden=True)
@click.pass_obj
def project(settings, directory: str, install_as_symlink: bool, allow_install: bool):
    """Run an install project directory (project mode)."""
    from globconf.context import Switches
    from globconf.project import run_project

    try:
        switches = Switches(install_as_symlink=install_as_symlink, allow_install=allow_install)
        context = run_project(directory, switches=switches, settings=settings)
    except GlobconfError as e:
        _fail(e)

    console.print(f"[bold blue]globconf[/] — project for {context.system_name} done")


# ── Consumer ─────────────────────────────────────────────────────────


@main.command()
@click.argument("system")
@click.argument("keys", nargs=-1, required=True)
@click.pass_obj
def get(settings, system: str, keys: tuple):
    """Print variables of an installed SYSTEM as KEY=value lines."""
    from globconf.protocol import Session

    try:
        session = Session.consumer(settings)
        session.set_system_name(system)
        values = [(key, session.get(key)) for key in keys]
    except GlobconfError as e:
        _fail(e)

    for key, value in values:
        click.echo(f"{key}={value}")


@main.command(name="list")
@click.pass_obj
def list_systems(settings):
    """List Systems installed in the package registry."""
    from globconf.registry import open_registry

    try:
        packages = open_registry(settings).packages()
    except GlobconfError as e:
        _fail(e)

    prefix = settings.package_prefix
    systems = {name[len(prefix):]: location for name, location in packages.items() if name.startswith(prefix)}
    if not systems:
        console.print("[yellow]No systems installed.[/]")
        return

    table = Table(title=f"Installed systems ({len(systems)})")
    table.add_column("System", style="cyan")
    table.add_column("Package")
    table.add_column("Location")
    for system, location in systems.items():
        table.add_row(system, f"{prefix}{system}", str(location))

    console.print(table)


if __name__ == "__main__":
    main()
