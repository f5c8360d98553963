"""Canonical Pydantic models shared across all specsync modules.

The models fall into three groups:

**Configuration models** -- resolved once at startup by
:func:`~specsync.config.resolve_settings` and passed explicitly into the
engine: :class:`RequestConfig`, :class:`PollConfig`, :class:`SyncSettings`.

**Persisted state** -- the JSON state file owned by
:mod:`specsync.state`: :class:`StateEntry` and :class:`StateDocument`.
Field aliases keep the on-disk camelCase keys (``specId``,
``collectionUid``, ``lastSpecSha``) while Python code uses snake_case.

**Run inputs and outputs** -- :class:`Identity`,
:class:`EnvironmentConfig` (with :class:`ServiceEnvironments` and
:class:`EnvironmentDescriptor`), :class:`ReconcileOverrides` and
:class:`ReconcileResult`.

Models that mirror files edited by hand use ``extra="allow"`` so that
unknown keys survive a load/save cycle.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from specsync.naming import DEFAULT_DOMAIN, identity_key, sanitize_name

DEFAULT_BASE_URL = "https://api.getpostman.com"


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP transport settings for calls to the documentation platform."""

    timeout: float = Field(default=30.0, description="Transport timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class PollConfig(BaseModel):
    """Deadline and fixed interval used by the task poller."""

    timeout_seconds: float = Field(default=180.0, description="Polling deadline")
    interval_seconds: float = Field(default=3.0, description="Sleep between fetches")


class SyncSettings(BaseModel):
    """Explicit configuration object handed to the reconciliation engine.

    Built by :func:`~specsync.config.resolve_settings` from CLI flags,
    environment variables and the project config file.

    Example::

        SyncSettings(api_key="PMAK-...", workspace_id="4f1c...")
    """

    api_key: str
    workspace_id: str
    base_url: str = DEFAULT_BASE_URL
    request: RequestConfig = Field(default_factory=RequestConfig)
    poll: PollConfig = Field(default_factory=PollConfig)


# --- Persisted state ---


class StateEntry(BaseModel):
    """Cached remote identifiers for one ``domain:service:stage`` key."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    spec_id: Optional[str] = Field(default=None, alias="specId")
    collection_uid: Optional[str] = Field(default=None, alias="collectionUid")
    last_spec_sha: Optional[str] = Field(default=None, alias="lastSpecSha")
    environments: Optional[dict[str, str]] = None


class StateDocument(BaseModel):
    """Top-level container persisted as the state file.

    ``meta`` is stamped on every save for human auditing and is never read
    back by the engine.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    entries: dict[str, StateEntry] = Field(default_factory=dict)
    meta: dict[str, Any] = Field(default_factory=dict)


# --- Run inputs ---


class Identity(BaseModel):
    """The ``(domain, service, stage)`` tuple a run reconciles."""

    model_config = ConfigDict(frozen=True)

    domain: str = DEFAULT_DOMAIN
    service: str
    stage: str

    @property
    def key(self) -> str:
        """State-file key for this identity."""
        return identity_key(self.domain, self.service, self.stage)


class EnvironmentDescriptor(BaseModel):
    """One deployment of a service (a region/stage/API id combination)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    region: Optional[str] = None
    stage: Optional[str] = None
    api_id: Optional[str] = Field(default=None, alias="apiId")
    enabled: Optional[bool] = True
    description: Optional[str] = None


class ServiceEnvironments(BaseModel):
    """URL template and environment list configured for one service."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    api_url_pattern: str = Field(default="", alias="apiUrlPattern")
    environments: list[EnvironmentDescriptor] = Field(default_factory=list)


class EnvironmentConfig(BaseModel):
    """Multi-environment configuration, usually ``config/environments.json``."""

    model_config = ConfigDict(extra="allow")

    services: dict[str, ServiceEnvironments] = Field(default_factory=dict)

    def service(self, name: str) -> Optional[ServiceEnvironments]:
        """Look up a service by sanitised name first, then by raw name."""
        return self.services.get(sanitize_name(name)) or self.services.get(name)

    def enabled_environments(self, name: str) -> list[EnvironmentDescriptor]:
        """Descriptors for *name* that are not explicitly disabled."""
        service = self.service(name)
        if service is None:
            return []
        return [env for env in service.environments if env.enabled is not False]


class ReconcileOverrides(BaseModel):
    """Operator-supplied inputs that take precedence over discovery."""

    spec_id: Optional[str] = None
    collection_uid: Optional[str] = None
    poll: bool = False
    force_push: bool = False
    spec_file_path: str = "index.json"


# --- Run output ---


class ResolutionSource(str, enum.Enum):
    """Which tier produced an identifier during a run."""

    OVERRIDE = "override"
    STATE = "state"
    SPEC_COLLECTIONS = "spec-collections"
    NAME_LOOKUP = "name-lookup"
    CREATED = "created"
    GENERATED = "generated"


class ReconcileResult(BaseModel):
    """Summary of one reconciliation run, printed as JSON by the CLI."""

    key: str
    spec_id: str
    collection_uid: str
    spec_source: ResolutionSource
    collection_source: ResolutionSource
    pushed: bool = False
    generated: bool = False
    fingerprint: Optional[str] = None
    task: Optional[Any] = None
    environments: dict[str, str] = Field(default_factory=dict)
