"""Rewrite a document's ``servers`` block from a multi-environment config.

When a service is deployed to several regions or stages, the single
server URL from the gateway export only describes one of them. Given an
:class:`~specsync.models.EnvironmentConfig`, :func:`enrich_servers`
replaces the whole ``servers`` array with one templated entry whose
variables enumerate every enabled deployment, for example::

    {
        "url": "https://{apiId}.execute-api.{region}.amazonaws.com/{stage}",
        "variables": {
            "apiId": {"default": "a1b2c3", "description": "API Gateway ID"},
            "region": {"default": "us-east-1", "enum": ["us-east-1", "eu-west-1"]},
            "stage": {"default": "prod", "description": "Deployment stage"},
        },
    }
"""

from __future__ import annotations

import copy
from typing import Any, Iterable, Optional

from specsync.models import EnvironmentConfig
from specsync.output import debug, info

_PLACEHOLDERS = (
    ("apiId", "api_id", "API Gateway ID"),
    ("region", "region", "AWS region"),
    ("stage", "stage", "Deployment stage"),
)


def enrich_servers(
    document: dict[str, Any],
    service: str,
    config: Optional[EnvironmentConfig],
) -> dict[str, Any]:
    """Return *document* with a single multi-environment server entry.

    Args:
        document: Transformed OpenAPI document. Not mutated.
        service: Service name, raw or sanitised.
        config: Environment configuration, or ``None`` when none was found.

    Returns:
        The input unchanged when there is nothing to enrich, otherwise a
        copy whose ``servers`` array holds exactly one entry.
    """
    if config is None:
        debug("No environment config loaded, keeping servers block")
        return document

    environments = config.enabled_environments(service)
    if not environments:
        debug(f"No enabled environments for {service}, keeping servers block")
        return document

    pattern = config.service(service).api_url_pattern  # type: ignore[union-attr]
    server: dict[str, Any] = {
        "url": pattern,
        "description": (
            f"API Gateway endpoint (multi-region, {len(environments)} "
            "environments configured)"
        ),
        "variables": {},
    }

    for placeholder, attr, description in _PLACEHOLDERS:
        if "{" + placeholder + "}" not in pattern:
            continue
        values = _distinct(getattr(env, attr) for env in environments)
        default = values[0] if values else ("API_ID" if placeholder == "apiId" else "")
        variable: dict[str, Any] = {"default": default, "description": description}
        if len(values) > 1:
            variable["enum"] = values
        server["variables"][placeholder] = variable

    if not server["variables"]:
        del server["variables"]

    enriched = copy.deepcopy(document)
    enriched["servers"] = [server]
    names = ", ".join(env.name for env in environments)
    info(f"Enriched servers with {len(environments)} environments: {names}")
    return enriched


def _distinct(values: Iterable[Optional[str]]) -> list[str]:
    """Non-empty values in first-seen order, without duplicates."""
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen
