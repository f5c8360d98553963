"""Preflight command -- validate credentials, tooling and local state."""

from __future__ import annotations

import os
from pathlib import Path

import typer

from specsync.commands import context_options
from specsync.config import (
    DEFAULT_STATE_FILE,
    ENV_API_KEY,
    ENV_BASE_URL,
    ENV_WORKSPACE_ID,
    load_project_config,
)
from specsync.exit_codes import EXIT_GENERIC_FAILURE
from specsync.models import DEFAULT_BASE_URL
from specsync.preflight import PreflightChecker


def preflight_command(
    ctx: typer.Context,
    state_file: Path = typer.Option(
        Path(DEFAULT_STATE_FILE), "--state-file", help="Local state file."
    ),
) -> None:
    """Check that everything a sync run needs is in place.

    Exits non-zero when any check fails; warnings do not fail the run.

    Example::

        specsync preflight
    """
    options = context_options(ctx)
    project = load_project_config() or {}
    checker = PreflightChecker(
        api_key=options.get("api_key") or os.environ.get(ENV_API_KEY),
        workspace_id=(
            options.get("workspace_id")
            or os.environ.get(ENV_WORKSPACE_ID)
            or project.get("workspace_id")
        ),
        base_url=(
            options.get("base_url")
            or os.environ.get(ENV_BASE_URL)
            or project.get("base_url")
            or DEFAULT_BASE_URL
        ),
        state_file=state_file,
    )
    report = checker.run_all()
    if not report.passed:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
