"""State commands -- inspect the local state file."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from specsync.config import DEFAULT_STATE_FILE
from specsync.exceptions import NotFoundError
from specsync.output import info, print_json
from specsync.state import load_state


state_app = typer.Typer(no_args_is_help=True)


@state_app.command("show")
def state_show(
    state_file: Path = typer.Option(
        Path(DEFAULT_STATE_FILE), "--state-file", help="Local state file."
    ),
    key: Optional[str] = typer.Option(
        None, "--key", help="Show a single domain:service:stage entry."
    ),
) -> None:
    """Print the cached identifiers as JSON.

    Example::

        specsync state show
        specsync state show --key demo:orders:prod
    """
    document = load_state(state_file)
    info(f"State file: {state_file}")
    if key is None:
        print_json(document.model_dump(mode="json", by_alias=True, exclude_none=True))
        return

    entry = document.entries.get(key)
    if entry is None:
        raise NotFoundError(f"No state entry for {key}")
    print_json(entry.model_dump(mode="json", by_alias=True, exclude_none=True))
