"""Typer application and CLI entry point for specsync.

This module wires the root Typer application, registers the built-in
commands (``sync``, ``env``, ``export``, ``preflight``, ``state``) and
installs the global options in :func:`main_callback`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a Ctrl-C handler, invokes the app, maps
:class:`~specsync.exceptions.SpecsyncError` to its exit code and writes a
crash log under the data directory for anything unexpected.

See Also:
    :mod:`specsync.config`: Settings resolution.
    :mod:`specsync.output`: Output manager initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from specsync import __version__
from specsync.commands.env import env_app
from specsync.commands.export import export_command
from specsync.commands.preflight import preflight_command
from specsync.commands.state import state_app
from specsync.commands.sync import sync_command
from specsync.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="specsync",
    help="Synchronise OpenAPI documents with a documentation platform.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("sync")(sync_command)
app.command("export")(export_command)
app.command("preflight")(preflight_command)
app.add_typer(env_app, name="env", help="Environment management.")
app.add_typer(state_app, name="state", help="Inspect the local state file.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specsync {__version__}")
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
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="Platform API key (default: $POSTMAN_API_KEY)."
    ),
    workspace_id: Optional[str] = typer.Option(
        None, "--workspace-id", help="Workspace id (default: $POSTMAN_WORKSPACE_ID)."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Platform API base URL."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the result as plain JSON even on a terminal."
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
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~specsync.output.OutputManager` and stores
    the credential overrides in ``ctx.obj`` for
    :func:`~specsync.commands.settings_from_context`.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        api_key: API key override (highest precedence).
        workspace_id: Workspace id override (highest precedence).
        base_url: Base URL override (highest precedence).
        json_output: Print the result as plain JSON without highlighting.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from specsync.output import OutputManager, set_output

    set_output(
        OutputManager(
            json_output=json_output, no_color=no_color, quiet=quiet, verbose=verbose
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["workspace_id"] = workspace_id
    ctx.obj["base_url"] = base_url
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from specsync.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specsync`` console script.

    :class:`~specsync.exceptions.SpecsyncError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions print the
    traceback to stderr, produce a crash log and exit with
    :data:`~specsync.exit_codes.EXIT_GENERIC_FAILURE`.

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
        from specsync.exceptions import SpecsyncError
        from specsync.output import error

        if isinstance(exc, SpecsyncError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            traceback.print_exc(file=sys.stderr)
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
