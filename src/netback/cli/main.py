"""Main entry point for the CLI."""

import typer

from netback.cli.backup import backup
from netback.cli.utils import version_callback

app = typer.Typer(
    name="netback",
    help="Network device configuration backup tool",
    add_completion=False,
    pretty_exceptions_enable=False,
)

app.command("backup")(backup)


@app.callback()
def version(
    show_version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        rich_help_panel="Options",
        help="Print the version and exit",
    ),
) -> None:
    """Handle CLI callback and version option."""
    _ = show_version


if __name__ == "__main__":
    app()
