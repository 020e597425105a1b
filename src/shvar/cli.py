"""Command line for reading and editing shell variable files."""

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from shvar.config import ConfigError, Settings, load_settings
from shvar.escape import MalformedEscapeError, escape, unescape
from shvar.log import configure_logging
from shvar.models import InvalidKeyError, check_key
from shvar.providers import env_vars
from shvar.storage import ShvarFileError, create_file, neutralized_lines, open_file, write_file

app = typer.Typer(
    help="Read and edit shell-style KEY=VALUE files without disturbing other lines",
    no_args_is_help=True,
)

# Module-level defaults for Typer arguments
_PATH_HELP = "File containing KEY=VALUE lines"
_KEY_HELP = "Shell variable name"
_MODE_HELP = "Permissions (octal) used if the file has to be created"
_EDITOR_LOG_FILE = "~/.cache/shvar/shvar.log"

_stdout = Console()


def _settings() -> Settings:
    try:
        return load_settings()
    except ConfigError as exc:
        typer.echo(f"Ignoring config: {exc}", err=True)
        return Settings()


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _checked_key(key: str) -> str:
    try:
        check_key(key)
    except InvalidKeyError as exc:
        _fail(str(exc))
    return key


def _file_mode(mode: str, settings: Settings) -> int:
    if not mode:
        return settings.file_mode
    try:
        return int(mode, 8)
    except ValueError:
        raise typer.BadParameter(f"{mode!r} is not an octal mode", param_hint="--mode") from None


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    settings = _settings()
    if verbose:
        configure_logging("DEBUG")
    else:
        configure_logging(settings.log_level, settings.log_file)


@app.command()
def get(
    path: Path = typer.Argument(..., help=_PATH_HELP),
    key: str = typer.Argument(..., help=_KEY_HELP),
) -> None:
    """Print the decoded value of KEY.  Exits 1 if it is missing or unreadable."""
    _checked_key(key)
    try:
        document = open_file(path)
    except ShvarFileError as exc:
        _fail(str(exc))
    value = document.get_value(key)
    if value is None:
        _fail(f"{key} is not set in {path}")
    typer.echo(value)


@app.command("set")
def set_(
    path: Path = typer.Argument(..., help=_PATH_HELP),
    key: str = typer.Argument(..., help=_KEY_HELP),
    value: str = typer.Argument(..., help="New value; an empty value removes the key"),
    keep_empty: bool = typer.Option(False, "--keep-empty", help="Store an empty value as KEY="),
    mode: str = typer.Option("", "--mode", help=_MODE_HELP),
) -> None:
    """Set KEY to VALUE, creating the file if needed."""
    _checked_key(key)
    file_mode = _file_mode(mode, _settings())
    try:
        with create_file(path) as document:
            if keep_empty:
                document.set(key, value)
            else:
                document.set_string(key, value)
            write_file(document, file_mode)
    except ShvarFileError as exc:
        _fail(str(exc))


@app.command()
def unset(
    path: Path = typer.Argument(..., help=_PATH_HELP),
    key: str = typer.Argument(..., help=_KEY_HELP),
) -> None:
    """Remove every assignment of KEY."""
    _checked_key(key)
    try:
        with create_file(path) as document:
            document.unset(key)
            write_file(document, _settings().file_mode)
    except ShvarFileError as exc:
        _fail(str(exc))


@app.command()
def show(path: Path = typer.Argument(..., help=_PATH_HELP)) -> None:
    """List the variables set in the file."""
    try:
        document = open_file(path)
    except ShvarFileError as exc:
        _fail(str(exc))
    table = Table("Key", "Value", title=Text(str(path)))
    for var in env_vars(document):
        if var.is_malformed:
            table.add_row(var.key, Text.assemble(("[ malformed ] ", "bold red"), var.value))
        else:
            table.add_row(var.key, Text(var.value))
    _stdout.print(table)


@app.command()
def check(path: Path = typer.Argument(..., help=_PATH_HELP)) -> None:
    """Report lines that would be commented out when the file is rewritten."""
    try:
        document = open_file(path)
    except ShvarFileError as exc:
        _fail(str(exc))
    lines = neutralized_lines(document)
    for line in lines:
        typer.echo(line)
    if lines:
        _fail(f"{len(lines)} line(s) in {path} would be commented out on write")


@app.command("escape")
def escape_(value: str = typer.Argument(..., help="Value to quote")) -> None:
    """Print VALUE quoted for use after KEY=."""
    typer.echo(escape(value))


@app.command("unescape")
def unescape_(text: str = typer.Argument(..., help="Text found after KEY=")) -> None:
    """Print the value TEXT stands for.  Exits 1 if it is malformed."""
    try:
        typer.echo(unescape(text))
    except MalformedEscapeError as exc:
        _fail(f"malformed value: {exc}")


@app.command()
def edit(
    path: Path = typer.Argument(..., help=_PATH_HELP),
    mode: str = typer.Option("", "--mode", help=_MODE_HELP),
) -> None:
    """Open the file in the terminal editor."""
    from shvar.app import run

    settings = _settings()
    # the editor owns the screen, so logs go to the configured file only
    configure_logging(settings.log_level, settings.log_file or _EDITOR_LOG_FILE)
    try:
        run(str(path), _file_mode(mode, settings))
    except ShvarFileError as exc:
        _fail(str(exc))


if __name__ == "__main__":
    app()
