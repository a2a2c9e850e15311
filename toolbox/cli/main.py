"""
Toolbox CLI - save, organize and re-run shell commands.

Commands:
    toolbox                         - Interactive mode
    toolbox add NAME COMMAND        - Save a command
    toolbox list                    - List saved commands
    toolbox run NAME                - Run a saved command
    toolbox delete NAME             - Delete a command
    toolbox modify NAME             - Change a command
    toolbox categories              - List categories
    toolbox export [FILENAME]       - Export commands to a bundle
    toolbox import FILENAME         - Import commands from a bundle
"""

import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import click

from toolbox.cli.render import USAGE_EXAMPLES, render_categories, render_listing, render_record
from toolbox.config import Settings
from toolbox.exceptions import EmptyImportError, ToolboxError
from toolbox.logging import setup_logging
from toolbox.state import Store
from toolbox.transport import LocalTransport
from toolbox.tui.terminal import make_console

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Log level (default: $TOOLBOX_LOG_LEVEL or WARNING)")
@click.pass_context
def cli(ctx, log_level: Optional[str]):
    """Toolbox - a terminal command shortcut manager."""
    settings = Settings.from_env()
    setup_logging(log_level or settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        _interactive(settings)


@cli.command()
@click.argument("name")
@click.argument("command")
@click.option("-d", "--description", default="", help="What the command does")
@click.option("-c", "--category", default="general", help="Category (default: general)")
@click.pass_obj
def add(settings: Settings, name: str, command: str, description: str, category: str):
    """
    Add a new command shortcut.

    Example:
        toolbox add list-ports "lsof -i -P -n | grep LISTEN" -d "List listening ports" -c network
    """
    with _reported_errors():
        _store(settings).add(name, command, description, category)
    click.secho(f"✓ Command '{name}' added successfully.", fg="green")


@cli.command("list")
@click.option("-c", "--category", default=None, help="Only this category")
@click.option("-s", "--search", default=None, help="Only names/descriptions containing this text")
@click.pass_obj
def list_commands(settings: Settings, category: Optional[str], search: Optional[str]):
    """List saved commands, grouped by category."""
    store = _store(settings)

    with _reported_errors():
        if not store.count():
            click.secho("No commands found. Add some with 'toolbox add' or run 'toolbox'.", fg="yellow")
            return
        records = store.list(category=category, search=search)

    if not records:
        click.secho("No matching commands found.", fg="yellow")
        return

    render_listing(make_console(), records, category=category, search=search)


@cli.command()
@click.argument("name")
@click.pass_obj
def run(settings: Settings, name: str):
    """Run a saved command."""
    with _reported_errors():
        record = _store(settings).get(name)

    click.echo(f"{click.style('Running:', fg='cyan')} {click.style(record.command, fg='green')}")
    click.secho("─" * 37, fg="yellow")
    code = LocalTransport().run_shell(record.command)
    click.secho("─" * 37, fg="yellow")

    if code == 0:
        click.secho("Command execution completed.", fg="green")
    else:
        click.secho(f"Command exited with status {code}.", fg="yellow")


@cli.command()
@click.argument("name")
@click.pass_obj
def delete(settings: Settings, name: str):
    """Delete a command (asks for confirmation)."""
    store = _store(settings)
    with _reported_errors():
        record = store.get(name)

    click.secho("About to delete:", fg="yellow")
    render_record(make_console(), record)

    if not click.confirm(click.style("Are you sure you want to delete this command?", fg="red"),
                         default=False):
        click.secho("Deletion cancelled.", fg="yellow")
        return

    with _reported_errors():
        store.delete(name)
    click.secho(f"✓ Command '{name}' deleted successfully.", fg="green")


@cli.command()
@click.argument("name")
@click.option("-cmd", "--command", "new_command", default=None, help="New command text")
@click.option("-d", "--description", "new_description", default=None, help="New description")
@click.option("-c", "--category", "new_category", default=None, help="New category")
@click.pass_obj
def modify(settings: Settings, name: str, new_command: Optional[str],
           new_description: Optional[str], new_category: Optional[str]):
    """
    Modify an existing command. Options left out keep their value.

    Example:
        toolbox modify list-ports -c net -d "Listening ports"
    """
    if new_command is None and new_description is None and new_category is None:
        click.secho("For interactive modification, run 'toolbox' and select 'Modify Command'.",
                    fg="yellow")
        return

    with _reported_errors():
        _store(settings).modify(name, new_command, new_description, new_category)
    click.secho(f"✓ Command '{name}' updated successfully.", fg="green")


@cli.command()
@click.pass_obj
def categories(settings: Settings):
    """List all categories with their command counts."""
    with _reported_errors():
        found = _store(settings).categories()

    if not found:
        click.secho("No commands found. Add some with 'toolbox add' or run 'toolbox'.", fg="yellow")
        return

    render_categories(make_console(), found)


@cli.command("export")
@click.argument("filename", required=False)
@click.option("-c", "--category", default=None, help="Only export this category")
@click.pass_obj
def export_commands(settings: Settings, filename: Optional[str], category: Optional[str]):
    """
    Export commands to a bundle.

    A bare FILENAME is written to the export directory; ".json" is added
    when missing. Without FILENAME a timestamped name is used.
    """
    with _reported_errors():
        result = _store(settings).export(filename, category)

    if category:
        click.secho(f"✓ {result.count} command(s) in category '{category}' exported to {result.path}",
                    fg="green")
    else:
        click.secho(f"✓ All commands ({result.count}) exported to {result.path}", fg="green")


@cli.command("import")
@click.argument("filename")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_obj
def import_commands(settings: Settings, filename: str, yes: bool):
    """
    Import commands from a bundle.

    FILENAME may be a path or the name of a file in the export directory.
    Imported commands replace existing commands with the same name.
    """
    store = _store(settings)

    with _reported_errors():
        incoming = store.read_bundle(filename)
        if not incoming:
            raise EmptyImportError("No commands found in the import file.")

        click.secho(f"About to import {len(incoming)} commands.", fg="yellow")
        if not yes and not click.confirm("Do you want to continue?", default=True):
            click.secho("Import cancelled.", fg="yellow")
            return

        count = store.import_bundle(filename)
    click.secho(f"✓ Imported {count} commands successfully.", fg="green")


@cli.command("help")
@click.pass_context
def help_command(ctx):
    """Show this help message."""
    click.echo(ctx.parent.get_help())
    click.echo("\nExamples:")
    for example in USAGE_EXAMPLES:
        click.echo(f"  {example}")


@cli.command()
def version():
    """Show Toolbox version."""
    from toolbox import __version__
    click.echo(f"toolbox version {__version__}")


def _store(settings: Settings) -> Store:
    return Store(settings.db_file, settings.export_dir)


@contextmanager
def _reported_errors() -> Iterator[None]:
    """Print Toolbox errors and exit 1. An empty import is only a warning."""
    try:
        yield
    except EmptyImportError as e:
        click.secho(str(e), fg="yellow")
        sys.exit(0)
    except ToolboxError as e:
        click.secho(f"Error: {e}", fg="red")
        sys.exit(1)


def _interactive(settings: Settings) -> None:
    """Run the interactive session."""
    from toolbox.tui.session import Session

    try:
        Session(_store(settings), settings=settings).run()
    except KeyboardInterrupt:
        click.echo("\nInterrupted.")
        sys.exit(130)


def main():
    """Entry point for CLI. Usage errors exit with status 1."""
    try:
        rv = cli.main(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()
