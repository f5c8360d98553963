"""Create or update remote environments for each configured deployment.

An environment upsert is a two-step saga:

1. If a uid is already known, ``PUT`` the new values to it.
2. If that update fails, or no uid is known, ``POST`` a new environment.

A stale cached uid (for example, an environment deleted in the web UI)
therefore never blocks a run. The failed first step is not hidden: it is
reported as a warning, passed to the optional ``on_update_failed`` hook,
and recorded on the returned :class:`UpsertOutcome`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from specsync.client.platform import PlatformAPI
from specsync.exceptions import SpecsyncError
from specsync.models import EnvironmentConfig, EnvironmentDescriptor, Identity
from specsync.naming import environment_asset_name
from specsync.output import debug, error, info, warning

UpdateFailedHook = Callable[[str, str, SpecsyncError], None]


@dataclass
class UpsertOutcome:
    """Result of one environment upsert.

    Attributes:
        uid: Identifier in effect after the call.
        action: ``"updated"`` or ``"created"``.
        update_error: The error raised by the update step when the saga
            fell back to creation, otherwise ``None``.
    """

    uid: str
    action: str
    update_error: Optional[SpecsyncError] = None

    @property
    def fell_back(self) -> bool:
        """True when an update was attempted, failed, and creation took over."""
        return self.update_error is not None


def _variable(key: str, value: Any) -> dict[str, Any]:
    return {
        "key": key,
        "value": "" if value is None else str(value),
        "type": "default",
        "enabled": True,
    }


def build_environment_values(pattern: str, env: EnvironmentDescriptor) -> list[dict[str, Any]]:
    """Environment variables for one configured deployment.

    ``baseUrl`` is the service URL pattern with every placeholder the
    descriptor can fill substituted; unknown placeholders stay as-is.
    """
    base_url = (
        pattern.replace("{apiId}", env.api_id or "{apiId}")
        .replace("{region}", env.region or "{region}")
        .replace("{stage}", env.stage or "{stage}")
    )
    description = env.description or f"{env.stage} environment in {env.region}"
    return [
        _variable("baseUrl", base_url),
        _variable("region", env.region),
        _variable("stage", env.stage),
        _variable("apiId", env.api_id),
        _variable("description", description),
    ]


def build_stage_values(
    base_url: str, stage: str, region: Optional[str] = None
) -> list[dict[str, Any]]:
    """Variables written by the standalone ``env upsert`` command.

    ``apiKey`` and ``bearerToken`` are empty placeholders for the user to
    fill in locally; secrets are never pushed.
    """
    values = []
    if base_url:
        values.append(_variable("baseUrl", base_url))
    values.append(_variable("stage", stage))
    if region:
        values.append(_variable("region", region))
    values.append(_variable("apiKey", ""))
    values.append(_variable("bearerToken", ""))
    return values


class EnvironmentUpserter:
    """Runs the update-then-create saga against the platform.

    Args:
        api: Platform API.
        on_update_failed: Optional hook called with ``(name, uid, error)``
            when the update step fails.
    """

    def __init__(
        self,
        api: PlatformAPI,
        on_update_failed: Optional[UpdateFailedHook] = None,
    ) -> None:
        self._api = api
        self._on_update_failed = on_update_failed

    def upsert(
        self,
        name: str,
        values: list[dict[str, Any]],
        existing_uid: Optional[str] = None,
    ) -> UpsertOutcome:
        """Update *existing_uid* if given, falling back to creating *name*.

        Raises:
            SpecsyncError: If creation fails. Update failures never raise.
        """
        update_error: Optional[SpecsyncError] = None
        if existing_uid:
            try:
                uid = self._api.update_environment(existing_uid, name, values)
                return UpsertOutcome(uid=uid, action="updated")
            except SpecsyncError as exc:
                update_error = exc
                warning(
                    f"Failed to update environment {name} ({existing_uid}), "
                    f"creating a new one: {exc}"
                )
                if self._on_update_failed is not None:
                    self._on_update_failed(name, existing_uid, exc)

        uid = self._api.create_environment(name, values)
        return UpsertOutcome(uid=uid, action="created", update_error=update_error)

    def resolve_uid(self, name: str, cached_uid: Optional[str]) -> Optional[str]:
        """Cached uid first, then a lookup by name in the workspace."""
        if cached_uid:
            return cached_uid
        found = self._api.find_environment_by_name(name)
        if found and found.get("uid"):
            debug(f"Resolved environment by name: {name} -> {found['uid']}")
            return str(found["uid"])
        return None

    def upsert_from_config(
        self,
        identity: Identity,
        config: EnvironmentConfig,
        cached: Optional[dict[str, str]] = None,
    ) -> dict[str, str]:
        """Upsert one environment per enabled descriptor of the service.

        Args:
            identity: Identity of the run; domain and service build names.
            config: Multi-environment configuration.
            cached: Environment name -> uid mapping from the state entry.

        Returns:
            Environment name -> uid for every environment upserted. A
            descriptor whose upsert fails is logged and left out, so the
            remaining environments are still processed.
        """
        environments = config.enabled_environments(identity.service)
        if not environments:
            debug(f"No environments configured for {identity.service}, skipping")
            return {}

        pattern = config.service(identity.service).api_url_pattern  # type: ignore[union-attr]
        cached = cached or {}
        info(f"Creating/updating {len(environments)} environments...")

        upserted: dict[str, str] = {}
        for env in environments:
            name = environment_asset_name(identity.domain, identity.service, env.name)
            try:
                existing = self.resolve_uid(name, cached.get(env.name))
                outcome = self.upsert(name, build_environment_values(pattern, env), existing)
            except SpecsyncError as exc:
                error(f"Failed to upsert environment {name}: {exc}")
                continue
            upserted[env.name] = outcome.uid
            info(f"  {outcome.action} {name} ({outcome.uid})")
        return upserted
