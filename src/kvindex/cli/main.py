"""Main CLI entry point for kvindex."""

import click

from kvindex import __version__
from kvindex.cli import commands


@click.group()
@click.version_option(version=__version__, prog_name="kvindex")
def cli() -> None:
    """kvindex - indexes and windowed statistics over a key-value store."""
    pass


cli.add_command(commands.stats)
cli.add_command(commands.pages)


def main() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
