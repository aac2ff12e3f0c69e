"""Typer application and CLI entry point for fetchcache.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``fetch``, ``generations``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~fetchcache.exceptions.FetchcacheError` exits with its own code;
any other exception is written to a crash log under the data directory.

See Also:
    :mod:`fetchcache.config`: Configuration resolution.
    :mod:`fetchcache.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from fetchcache import __version__
from fetchcache.commands.config import config_app
from fetchcache.commands.fetch import fetch_command
from fetchcache.commands.generations import generations_app
from fetchcache.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="fetchcache",
    help="Runtime HTTP response cache with offline fallbacks.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("fetch")(fetch_command)
app.add_typer(generations_app, name="generations", help="Inspect and clean cache generations.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"fetchcache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    origin: Optional[str] = typer.Option(
        None, "--origin", help="Origin base URL for relative request URLs."
    ),
    cache_version: Optional[str] = typer.Option(
        None, "--cache-version", help="Generation version tag to use."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~fetchcache.output.OutputManager`, using
    ``output.format`` from the resolved config unless ``--json`` or
    ``--plain`` is given, and stores shared options in ``ctx.obj`` for the
    sub-commands.
    """
    from fetchcache.config import resolve_config
    from fetchcache.exceptions import ConfigError
    from fetchcache.output import OutputFormat, OutputManager, set_output

    cli_format = "json" if json_output else "plain" if plain_output else None
    try:
        fmt = OutputFormat(resolve_config(cli_format=cli_format).output.format)
    except ConfigError:
        # the sub-command reports the broken config itself
        fmt = OutputFormat(cli_format or "auto")

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["origin"] = origin
    ctx.obj["cache_version"] = cache_version
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from fetchcache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``fetchcache`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from fetchcache.exceptions import FetchcacheError
        from fetchcache.output import error

        if isinstance(exc, FetchcacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
