"""Convex devtools CLI - convex-devtools command."""

import click

from convex_devtools.cli.up import up_command
from convex_devtools.core.logging import configure_logging


@click.group()
@click.version_option(package_name="convex-devtools", prog_name="convex-devtools")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Convex devtools - browse and watch a backend project's functions and tables."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(verbose=verbose)


cli.add_command(up_command, name="up")


if __name__ == "__main__":
    cli()
