"""Built-in CLI sub-commands for specsync.

* :mod:`~specsync.commands.sync` -- reconcile one service/stage.
* :mod:`~specsync.commands.env` -- standalone environment upsert.
* :mod:`~specsync.commands.export` -- export a document from API Gateway.
* :mod:`~specsync.commands.preflight` -- validate the local setup.
* :mod:`~specsync.commands.state` -- inspect the state file.

Single commands export a plain callback registered on the root app;
groups (``env``, ``state``) export a :class:`typer.Typer` sub-application.
"""

from __future__ import annotations

from typing import Any

import typer

from specsync.models import SyncSettings


def context_options(ctx: typer.Context) -> dict[str, Any]:
    """Global options stored by the root callback (empty when run standalone)."""
    root = ctx.find_root()
    return root.obj if isinstance(root.obj, dict) else {}


def settings_from_context(ctx: typer.Context) -> SyncSettings:
    """Resolve :class:`~specsync.models.SyncSettings` from the global flags.

    Raises:
        ConfigError: If no API key or workspace id can be resolved.
    """
    from specsync.config import resolve_settings

    options = context_options(ctx)
    return resolve_settings(
        cli_api_key=options.get("api_key"),
        cli_workspace_id=options.get("workspace_id"),
        cli_base_url=options.get("base_url"),
    )
