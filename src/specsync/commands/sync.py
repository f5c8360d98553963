"""Sync command -- reconcile one service/stage with the platform.

Loads the OpenAPI document, the state file and the optional environment
config, then runs :class:`~specsync.sync.engine.Reconciler`. The run
summary is printed to stdout as JSON; progress goes to stderr.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from specsync.client import HttpClient, PlatformAPI
from specsync.commands import settings_from_context
from specsync.config import DEFAULT_ENVIRONMENTS_FILE, DEFAULT_STATE_FILE, load_environment_config
from specsync.models import Identity, ReconcileOverrides
from specsync.naming import DEFAULT_DOMAIN
from specsync.output import print_json
from specsync.parser import load_document
from specsync.state import StateStore
from specsync.sync import Reconciler


def sync_command(
    ctx: typer.Context,
    service: str = typer.Option(..., "--service", help="Service name."),
    stage: str = typer.Option(..., "--stage", help="Deployment stage."),
    openapi: str = typer.Option(
        ..., "--openapi", help="Path to the OpenAPI document ('-' for stdin)."
    ),
    domain: str = typer.Option(DEFAULT_DOMAIN, "--domain", help="Domain (team) name."),
    file_path: str = typer.Option(
        "index.json", "--file-path", help="Root file path inside the remote spec."
    ),
    spec_id: Optional[str] = typer.Option(None, "--spec-id", help="Use this spec id."),
    collection_uid: Optional[str] = typer.Option(
        None, "--collection-uid", help="Use this collection uid."
    ),
    state_file: Path = typer.Option(
        Path(DEFAULT_STATE_FILE), "--state-file", help="Local state file."
    ),
    environments: Path = typer.Option(
        Path(DEFAULT_ENVIRONMENTS_FILE),
        "--environments",
        help="Multi-environment config (skipped when missing).",
    ),
    poll: bool = typer.Option(False, "--poll", help="Wait for the sync task to finish."),
    force_push: bool = typer.Option(
        False, "--force-push", help="Push content even when unchanged."
    ),
) -> None:
    """Create or update the spec, collection and environments of a service.

    Example::

        specsync sync --service orders --stage prod --openapi openapi.json
        specsync sync --domain payments --service refunds --stage dev \\
            --openapi openapi.yaml --poll
    """
    settings = settings_from_context(ctx)
    document = load_document(openapi)
    environment_config = load_environment_config(environments)

    store = StateStore(state_file)
    store.load()

    identity = Identity(domain=domain or DEFAULT_DOMAIN, service=service, stage=stage)
    overrides = ReconcileOverrides(
        spec_id=spec_id,
        collection_uid=collection_uid,
        poll=poll,
        force_push=force_push,
        spec_file_path=file_path,
    )

    with HttpClient(settings) as http:
        api = PlatformAPI(http, settings.workspace_id)
        result = Reconciler(api, store, settings).reconcile(
            identity, document, overrides, environment_config
        )

    print_json(result.model_dump(mode="json"))
