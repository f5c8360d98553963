"""Env commands -- manage a single stage environment.

``specsync env upsert`` writes one environment named
``[<domain>] <service> #env-[<region>-]<stage>`` with a ``baseUrl``,
``stage`` and optional ``region``, plus empty ``apiKey`` and
``bearerToken`` placeholders for local use.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from specsync.client import HttpClient, PlatformAPI
from specsync.commands import settings_from_context
from specsync.exceptions import SpecsyncError
from specsync.naming import stage_environment_name
from specsync.output import print_json, success, warning
from specsync.parser import load_document
from specsync.sync.environments import EnvironmentUpserter, build_stage_values


env_app = typer.Typer(no_args_is_help=True)


def derive_base_url(base_url: Optional[str], openapi: Optional[str]) -> str:
    """Explicit *base_url*, else the first server URL of the document, else ``""``.

    An unreadable document is not an error here; it only means no URL
    can be derived.
    """
    if base_url:
        return base_url
    if not openapi:
        return ""
    try:
        document: dict[str, Any] = load_document(openapi)
    except SpecsyncError as exc:
        warning(f"Could not read {openapi} to derive baseUrl: {exc}")
        return ""
    servers = document.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        url = servers[0].get("url")
        if isinstance(url, str) and url.strip():
            return url.strip()
    return ""


@env_app.command("upsert")
def env_upsert(
    ctx: typer.Context,
    domain: str = typer.Option(..., "--domain", help="Domain (team) name."),
    service: str = typer.Option(..., "--service", help="Service name."),
    stage: str = typer.Option(..., "--stage", help="Deployment stage."),
    region: Optional[str] = typer.Option(None, "--region", help="Deployment region."),
    openapi: Optional[str] = typer.Option(
        None, "--openapi", help="Document whose first server URL becomes baseUrl."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Explicit baseUrl (wins over --openapi)."
    ),
    env_uid: Optional[str] = typer.Option(
        None, "--env-uid", help="Existing environment uid (skips the lookup)."
    ),
) -> None:
    """Create or update the environment of one service stage.

    Example::

        specsync env upsert --domain payments --service refunds --stage dev
        specsync env upsert --domain payments --service refunds --stage prod \\
            --region us-east-1 --openapi openapi.json
    """
    settings = settings_from_context(ctx)
    name = stage_environment_name(domain, service, stage, region)
    url = derive_base_url(base_url, openapi)
    values = build_stage_values(url, stage, region)

    with HttpClient(settings) as http:
        upserter = EnvironmentUpserter(PlatformAPI(http, settings.workspace_id))
        existing = upserter.resolve_uid(name, env_uid)
        outcome = upserter.upsert(name, values, existing)

    success(f"{outcome.action.capitalize()} environment {name} ({outcome.uid})")
    if not url:
        warning("baseUrl was not set (no --base-url and no servers[0].url)")
    print_json({"name": name, "uid": outcome.uid, "action": outcome.action})
