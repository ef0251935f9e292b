"""Command line interface for VCS Blame."""

import asyncio
import json
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Any, NoReturn, Optional, Tuple

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import BlameConfig, ConfigManager
from .models import is_valid_sha
from .services import url_resolver
from .services.blame_service import BlameService
from .utils.exception_logger import ExceptionLogger
from . import __version__

logger = logging.getLogger(__name__)

console = Console()
error_console = Console(stderr=True)


def run_async(coro):
    """
    Run an async coroutine, handling both new event loops and existing ones.

    Commands normally run without an event loop; when one is already running
    (embedding, some test environments) the coroutine runs on a fresh loop in
    a helper thread.

    Args:
        coro: The coroutine to run

    Returns:
        The result of the coroutine
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    result = None
    exception = None

    def run_in_new_loop():
        nonlocal result, exception
        try:
            result = asyncio.run(coro)
        except Exception as e:
            exception = e

    thread = threading.Thread(target=run_in_new_loop)
    thread.start()
    thread.join()

    if exception:
        raise exception
    return result


def _fail(message: str) -> NoReturn:
    error_console.print(f"❌ {message}", style="red")
    sys.exit(1)


def _load_config(ctx) -> BlameConfig:
    config_manager: ConfigManager = ctx.obj["config_manager"]
    try:
        return config_manager.load()
    except ValueError as e:
        _fail(str(e))


def _create_service(ctx) -> BlameService:
    return BlameService(_load_config(ctx))


def _absolute(file_path: str) -> str:
    return os.path.abspath(file_path)


def _parse_setting(assignment: str) -> Tuple[str, Any]:
    """Split KEY=VALUE; VALUE is read as JSON when possible."""
    if "=" not in assignment:
        raise click.BadParameter(f"Expected KEY=VALUE, got '{assignment}'")
    key, raw_value = assignment.split("=", 1)
    key = key.strip().replace("-", "_")
    try:
        value = json.loads(raw_value)
    except json.JSONDecodeError:
        value = raw_value
    return key, value


@click.group()
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="vcs-blame")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """Show who last changed a line, and link to it on the hosting provider.

    \b
    EXAMPLES:
      vcs-blame line src/app.py 42          # Blame text for line 42
      vcs-blame line src/app.py 10 --end 20 # Latest change in lines 10-20
      vcs-blame sha src/app.py 42           # Commit SHA of line 42
      vcs-blame commit-url src/app.py 42    # Web URL of that commit
      vcs-blame file-url src/app.py --line1 10 --line2 20
      vcs-blame remote-url git@github.com:owner/repo.git

    \b
    CONFIGURATION:
      Config file: .vcs-blame/config.json (searched upwards from the cwd)
      vcs-blame init                        # Write the default config
      vcs-blame config --show               # Display the config
      vcs-blame config --set date_format="%r"
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    if config:
        config_manager = ConfigManager(Path(config))
    else:
        config_manager = ConfigManager.create_with_backtrack()
    ctx.obj["config_manager"] = config_manager

    ExceptionLogger.initialize(project_root=config_manager.config_path.parent.parent)


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
@click.option(
    "--vcs",
    type=click.Choice(["git", "jj"]),
    default=None,
    help="Version control backend (default: git)",
)
@click.option("--date-format", help="strftime format, %r for relative time")
@click.option("--template", help="Blame message template")
@click.pass_context
def init(
    ctx,
    force: bool,
    vcs: Optional[str],
    date_format: Optional[str],
    template: Optional[str],
):
    """Write a configuration file with default settings."""
    config_manager: ConfigManager = ctx.obj["config_manager"]
    if config_manager.config_path.exists() and not force:
        _fail(
            f"Configuration already exists at {config_manager.config_path} "
            "(use --force to overwrite)"
        )

    overrides = {}
    if vcs is not None:
        overrides["vcs"] = vcs
    if date_format is not None:
        overrides["date_format"] = date_format
    if template is not None:
        overrides["message_template"] = template

    try:
        config_manager.create_default_config(**overrides)
    except ValidationError as e:
        _fail(f"Invalid configuration: {e}")

    console.print(f"✅ Configuration written to {config_manager.config_path}", style="green")


@cli.command()
@click.option("--show", is_flag=True, help="Display current configuration")
@click.option(
    "--set",
    "settings",
    multiple=True,
    metavar="KEY=VALUE",
    help="Update a setting (repeatable); VALUE is parsed as JSON when possible",
)
@click.pass_context
def config(ctx, show: bool, settings: Tuple[str, ...]):
    """Show or update the configuration.

    \b
    EXAMPLES:
      vcs-blame config --show
      vcs-blame config --set vcs=jj
      vcs-blame config --set max_commit_summary_length=50
      vcs-blame config --set 'ignored_filetypes=["markdown"]'
    """
    config_manager: ConfigManager = ctx.obj["config_manager"]

    if settings:
        updates = dict(_parse_setting(assignment) for assignment in settings)
        unknown = sorted(set(updates) - set(BlameConfig.model_fields))
        if unknown:
            _fail(f"Unknown setting(s): {', '.join(unknown)}")
        try:
            config_manager.update_config(**updates)
        except (ValidationError, ValueError) as e:
            _fail(f"Failed to update configuration: {e}")
        for key in updates:
            console.print(f"✅ {key} updated", style="green")

    if show:
        current = _load_config(ctx)
        table = Table(title=f"Configuration ({config_manager.config_path})")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        for key, value in current.model_dump().items():
            table.add_row(key, json.dumps(value, ensure_ascii=False))
        console.print(table)

    if not settings and not show:
        console.print("ℹ️  No configuration changes requested", style="yellow")
        console.print("Use --show to display the configuration")
        console.print("Use --set KEY=VALUE to change a setting")


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=click.IntRange(min=1))
@click.option("--end", "end_line", type=click.IntRange(min=1), help="Last line of a selection")
@click.pass_context
def line(ctx, file_path: str, line: int, end_line: Optional[int]):
    """Print the blame text for LINE of FILE_PATH."""
    service = _create_service(ctx)
    path = _absolute(file_path)

    async def _blame() -> Optional[str]:
        await service.initialize(path)
        return await service.get_blame_text(path, line, end_line)

    blame_text = run_async(_blame())
    if blame_text is None:
        if ctx.obj["verbose"]:
            console.print("No blame information available", style="dim")
        return
    click.echo(blame_text.strip())


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=click.IntRange(min=1))
@click.option("--end", "end_line", type=click.IntRange(min=1), help="Last line of a selection")
@click.pass_context
def sha(ctx, file_path: str, line: int, end_line: Optional[int]):
    """Print the commit SHA that last changed LINE of FILE_PATH."""
    service = _create_service(ctx)
    commit_id = run_async(service.get_sha(_absolute(file_path), line, end_line))
    if not is_valid_sha(commit_id):
        _fail("Line is not committed yet")
    click.echo(commit_id)


@cli.command("commit-url")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=click.IntRange(min=1))
@click.option("--end", "end_line", type=click.IntRange(min=1), help="Last line of a selection")
@click.pass_context
def commit_url(ctx, file_path: str, line: int, end_line: Optional[int]):
    """Print the web URL of the commit that last changed LINE."""
    service = _create_service(ctx)
    url = run_async(service.get_commit_url(_absolute(file_path), line, end_line))
    if url is None:
        _fail("Unable to build commit URL: the line has no commit SHA")
    click.echo(url)


@cli.command("file-url")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--line1", type=click.IntRange(min=1), help="First line to highlight")
@click.option("--line2", type=click.IntRange(min=1), help="Last line to highlight")
@click.option("--sha", "ref", help="Commit or branch to link to")
@click.pass_context
def file_url(
    ctx,
    file_path: str,
    line1: Optional[int],
    line2: Optional[int],
    ref: Optional[str],
):
    """Print the web URL of FILE_PATH, optionally anchored to lines."""
    if line2 is not None and line1 is None:
        raise click.UsageError("--line2 requires --line1")

    service = _create_service(ctx)
    path = _absolute(file_path)
    if ref is not None:
        url = run_async(service.get_file_url(path, ref, line1, line2))
    else:
        url = run_async(service.get_file_url_for_selection(path, line1, line2))
    click.echo(url)


@cli.command("remote-url")
@click.argument("remote")
@click.option("--commit", "commit_sha", help="Print the URL of this commit instead")
def remote_url(remote: str, commit_sha: Optional[str]):
    """Print the web URL of a raw REMOTE (ssh, https, Azure DevOps...)."""
    if commit_sha:
        click.echo(url_resolver.commit_url(commit_sha, remote))
    else:
        click.echo(url_resolver.canonicalize(remote))


def main():
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
