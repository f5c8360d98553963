"""Display names and state keys for synchronized assets.

Remote lookups resolve assets by exact name, so these helpers must produce
the same strings on every run. All of them are pure.
"""

from __future__ import annotations

import re

DEFAULT_DOMAIN = "demo"

_WHITESPACE = re.compile(r"\s+")


def sanitize_name(value: str) -> str:
    """Replace each run of whitespace in *value* with a single underscore."""
    return _WHITESPACE.sub("_", value)


def identity_key(domain: str | None, service: str, stage: str) -> str:
    """Build the ``domain:service:stage`` key used to index the state file.

    Args:
        domain: Owning domain. Falls back to ``demo`` when empty.
        service: Service name.
        stage: Deployment stage.

    Returns:
        The colon-joined, whitespace-normalised key.
    """
    parts = (domain or DEFAULT_DOMAIN, service, stage)
    return ":".join(sanitize_name(p) for p in parts)


def domain_tag(domain: str | None) -> str:
    """Upper-cased, sanitised domain used inside square brackets."""
    return sanitize_name(domain or DEFAULT_DOMAIN).upper()


def main_asset_name(domain: str | None, service: str) -> str:
    """Shared display name of the spec and its generated collection.

    Example::

        >>> main_asset_name("demo", "order service")
        '[DEMO] order_service #main'
    """
    return f"[{domain_tag(domain)}] {sanitize_name(service)} #main"


def environment_asset_name(domain: str | None, service: str, environment: str) -> str:
    """Display name of the remote environment for one configured environment."""
    return f"[{domain or DEFAULT_DOMAIN}] {sanitize_name(service)} #{environment}"


def stage_environment_name(
    domain: str, service: str, stage: str, region: str | None = None
) -> str:
    """Display name used by the standalone ``env upsert`` command."""
    region_part = f"{region}-" if region else ""
    return f"[{domain}] {service} #env-{region_part}{stage}"
