"""convex-devtools up command - start the server."""

import asyncio
from pathlib import Path

import click
from rich.console import Console

from convex_devtools.config.loader import load_config
from convex_devtools.core.errors import DevtoolsError
from convex_devtools.core.logging import configure_logging

_console = Console(stderr=True)


def _print_banner(host: str, port: int, functions_dir: Path) -> None:
    """Print startup banner with endpoint info."""
    banner_width = 64
    base_url = f"http://{host}:{port}"
    rule_line = "─" * banner_width

    _console.print()
    _console.print(rule_line, style="dim cyan", highlight=False)
    _console.print(
        "Convex Devtools · Ready".center(banner_width), style="bold cyan", highlight=False
    )
    _console.print(rule_line, style="dim cyan", highlight=False)
    _console.print()
    _console.print(f"  Schema API:      {base_url}/api/schema", style="green", highlight=False)
    _console.print(f"  Schema Updates:  ws://{host}:{port}/ws", highlight=False)
    _console.print(f"  Status:          {base_url}/api/status", highlight=False)
    _console.print(f"  Functions:       {functions_dir}", style="dim", highlight=False)
    _console.print()


@click.command()
@click.option(
    "--dir",
    "-d",
    "project_dir",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Path to the project directory",
)
@click.option("--port", "-p", type=click.IntRange(0, 65535), help="Override server port")
@click.pass_context
def up_command(ctx: click.Context, project_dir: Path, port: int | None) -> None:
    """Scan the project's functions, watch them, and serve the schema.

    Runs in the foreground until interrupted.
    """
    from convex_devtools.daemon.lifecycle import run_server

    project_dir = project_dir.resolve()

    try:
        config = load_config(project_dir)
    except DevtoolsError as e:
        raise click.ClickException(e.message) from e
    if port is not None:
        config.server.port = port
    configure_logging(config.logging, verbose=bool(ctx.obj and ctx.obj.get("verbose")))

    functions_dir = project_dir / config.project.functions_dir
    if not functions_dir.is_dir():
        raise click.ClickException(f"Functions directory not found: {functions_dir}")

    try:
        asyncio.run(run_server(project_dir, config))
    except DevtoolsError as e:
        raise click.ClickException(e.message) from e
    except KeyboardInterrupt:
        click.echo("\nStopped")
