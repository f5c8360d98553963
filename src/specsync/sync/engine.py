"""Resolution-and-reconciliation engine.

:class:`Reconciler` drives one run for one ``(domain, service, stage)``
identity:

1. resolve or create the remote spec;
2. push the normalised document to the spec's root file;
3. resolve the linked collection through three fallback tiers;
4. synchronise the collection, or generate it when none exists;
5. record identifiers in the state entry;
6. upsert per-environment variable sets when configured;
7. persist the state document.

**Content push policy: skip-on-match.** The serialised document is
fingerprinted. When the spec id is the one already cached and the
fingerprint equals ``lastSpecSha``, the PATCH is skipped. Any other case
(new spec id, changed content, ``force_push``) pushes, and
``lastSpecSha`` is updated after every successful push. A newly created
spec already holds the content, so creation counts as the push.

State is saved as soon as a new spec id is established, after each
push and once the collection uid is known (before any environment is
touched), so a failure later in the run never loses identifiers that already
exist remotely. Reruns are safe because every tier falls back to a name
lookup.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from specsync.client.platform import PlatformAPI
from specsync.exceptions import InvalidUsageError, ResolutionError, TaskFailedError
from specsync.models import (
    EnvironmentConfig,
    Identity,
    ReconcileOverrides,
    ReconcileResult,
    ResolutionSource,
    StateEntry,
    SyncSettings,
)
from specsync.naming import main_asset_name
from specsync.output import debug, info, success, warning
from specsync.parser.loader import spec_type_for
from specsync.state.store import StateStore
from specsync.sync.environments import EnvironmentUpserter
from specsync.sync.extraction import extract_collection_uid
from specsync.sync.poller import TaskPoller, is_success, task_status
from specsync.transform import enrich_servers, fingerprint, serialize_document, transform_document


def _failure_message(kind: str, payload: Any) -> str:
    """Build the fatal message for a task that did not succeed."""
    detail: Any = None
    if isinstance(payload, dict):
        detail = payload.get("details")
        if not detail and isinstance(payload.get("error"), dict):
            detail = payload["error"].get("message")
    if not detail:
        detail = f"task status {task_status(payload)!r}" if payload is not None else "Unknown error"
    if not isinstance(detail, str):
        detail = json.dumps(detail, default=str)
    full = json.dumps(payload, indent=2, default=str)
    return f"Collection {kind} failed: {detail}\nFull response: {full}"


class Reconciler:
    """Reconcile one identity's spec, collection and environments.

    Args:
        api: Platform API bound to the target workspace.
        store: Loaded state store; entries are mutated in place and saved.
        settings: Resolved settings; the poll deadline and interval come
            from ``settings.poll``.
        poller: Optional task poller, built from *settings* when omitted.
        upserter: Optional environment upserter, built from *api* when
            omitted.
    """

    def __init__(
        self,
        api: PlatformAPI,
        store: StateStore,
        settings: SyncSettings,
        poller: Optional[TaskPoller] = None,
        upserter: Optional[EnvironmentUpserter] = None,
    ) -> None:
        self._api = api
        self._store = store
        self._settings = settings
        self._poller = poller or TaskPoller(
            api,
            timeout=settings.poll.timeout_seconds,
            interval=settings.poll.interval_seconds,
        )
        self._upserter = upserter or EnvironmentUpserter(api)

    def reconcile(
        self,
        identity: Identity,
        document: dict[str, Any],
        overrides: Optional[ReconcileOverrides] = None,
        environment_config: Optional[EnvironmentConfig] = None,
    ) -> ReconcileResult:
        """Run the full reconciliation for *identity*.

        Args:
            identity: The ``(domain, service, stage)`` being synchronised.
            document: Raw OpenAPI document; transformed before use.
            overrides: Operator-supplied ids and flags.
            environment_config: Optional multi-environment configuration.

        Returns:
            A :class:`~specsync.models.ReconcileResult` describing what was
            resolved and what was pushed.

        Raises:
            InvalidUsageError: If the identity is incomplete.
            TaskFailedError: If a polled task ends without success.
            ResolutionError: If no identifier can be resolved.
            RemoteCallError: If any platform call fails.
        """
        overrides = overrides or ReconcileOverrides()
        self._validate(identity)

        key = identity.key
        name = main_asset_name(identity.domain, identity.service)
        entry = self._store.entry(key)
        cached_spec_id = entry.spec_id

        prepared = transform_document(document)
        prepared = enrich_servers(prepared, identity.service, environment_config)
        content = serialize_document(prepared)
        sha = fingerprint(content)

        spec_id, spec_source = self._resolve_spec(
            entry, name, overrides, content, sha, spec_type_for(prepared)
        )
        pushed = self._push_content(
            entry, spec_id, spec_source, cached_spec_id, overrides, content, sha
        )

        generated = False
        collection_uid, collection_source = self._resolve_collection(
            entry, spec_id, name, overrides
        )
        if collection_uid is not None and collection_source is not None:
            task = self._synchronize(collection_uid, spec_id, overrides.poll)
        else:
            collection_uid, task = self._generate(spec_id, name)
            collection_source = ResolutionSource.GENERATED
            generated = True

        entry.collection_uid = collection_uid
        if not entry.spec_id:
            entry.spec_id = spec_id
        self._store.save()

        environments: dict[str, str] = {}
        if environment_config is not None:
            environments = self._upserter.upsert_from_config(
                identity, environment_config, entry.environments
            )
            if environments:
                entry.environments = {**(entry.environments or {}), **environments}

        self._store.save()
        success(f"State updated for {key}")

        return ReconcileResult(
            key=key,
            spec_id=spec_id,
            collection_uid=collection_uid,
            spec_source=spec_source,
            collection_source=collection_source,
            pushed=pushed,
            generated=generated,
            fingerprint=sha,
            task=task,
            environments=environments,
        )

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate(identity: Identity) -> None:
        missing = [
            field
            for field in ("service", "stage")
            if not getattr(identity, field).strip()
        ]
        if missing:
            raise InvalidUsageError(f"Missing required identity field(s): {', '.join(missing)}")

    def _resolve_spec(
        self,
        entry: StateEntry,
        name: str,
        overrides: ReconcileOverrides,
        content: str,
        sha: str,
        spec_type: str,
    ) -> tuple[str, ResolutionSource]:
        """Override > cached > lookup by name > create."""
        if overrides.spec_id:
            if entry.spec_id != overrides.spec_id:
                entry.spec_id = overrides.spec_id
                entry.last_spec_sha = None
                self._store.save()
            info(f"Using Spec from override: {overrides.spec_id}")
            return overrides.spec_id, ResolutionSource.OVERRIDE

        if entry.spec_id:
            info(f"Using Spec: {entry.spec_id}")
            return entry.spec_id, ResolutionSource.STATE

        found = self._api.find_spec_by_name(name)
        if found and found.get("id"):
            spec_id = str(found["id"])
            source = ResolutionSource.NAME_LOOKUP
            info(f"Resolved Spec by name: {name} -> {spec_id}")
        else:
            spec_id = self._api.create_spec(
                name, overrides.spec_file_path, content, spec_type=spec_type
            )
            source = ResolutionSource.CREATED
            entry.last_spec_sha = sha
            info(f"Created Spec: {name} -> {spec_id}")

        entry.spec_id = spec_id
        self._store.save()
        return spec_id, source

    def _push_content(
        self,
        entry: StateEntry,
        spec_id: str,
        spec_source: ResolutionSource,
        cached_spec_id: Optional[str],
        overrides: ReconcileOverrides,
        content: str,
        sha: str,
    ) -> bool:
        """PATCH the root file unless the cached spec already holds *sha*."""
        if spec_source is ResolutionSource.CREATED:
            return True

        unchanged = spec_id == cached_spec_id and entry.last_spec_sha == sha
        if unchanged and not overrides.force_push:
            info(f"Spec content unchanged ({sha[:12]}), skipping push")
            return False

        self._api.patch_spec_file(spec_id, overrides.spec_file_path, content)
        entry.last_spec_sha = sha
        self._store.save()
        info(f"Patched spec file {overrides.spec_file_path}")
        return True

    def _resolve_collection(
        self,
        entry: StateEntry,
        spec_id: str,
        name: str,
        overrides: ReconcileOverrides,
    ) -> tuple[Optional[str], Optional[ResolutionSource]]:
        """Override > cached > spec's generated collections > lookup by name."""
        if overrides.collection_uid:
            return overrides.collection_uid, ResolutionSource.OVERRIDE
        if entry.collection_uid:
            return entry.collection_uid, ResolutionSource.STATE

        collections = self._api.list_spec_collections(spec_id)
        match = next((c for c in collections if c.get("name") == name and c.get("uid")), None)
        if match is not None:
            info(f"Resolved Collection from spec's generated collections: {name} -> {match['uid']}")
            return str(match["uid"]), ResolutionSource.SPEC_COLLECTIONS
        if len(collections) == 1 and collections[0].get("uid"):
            uid = str(collections[0]["uid"])
            info(f"Resolved Collection from spec (single collection): {uid}")
            return uid, ResolutionSource.SPEC_COLLECTIONS

        found = self._api.find_collection_by_name(name)
        if found and found.get("uid"):
            info(f"Resolved Collection by name: {name} -> {found['uid']}")
            return str(found["uid"]), ResolutionSource.NAME_LOOKUP

        return None, None

    def _synchronize(self, collection_uid: str, spec_id: str, poll: bool) -> Any:
        """Start a sync; poll it only when the caller asked for it."""
        info(f"Syncing collection {collection_uid} with spec {spec_id}...")
        handle = self._api.sync_collection(collection_uid, spec_id)
        if not handle.accepted:
            warning(f"Sync request returned HTTP {handle.status_code}, expected 202")
        debug(f"Sync task: {json.dumps(handle.payload, default=str)}")

        if not poll:
            return handle.payload
        if handle.locator is None:
            warning("Sync response carried no task locator, cannot poll")
            return handle.payload

        info("Polling sync task...")
        result = self._poller.poll(handle.locator)
        if not is_success(result):
            raise TaskFailedError(_failure_message("sync", result), payload=result)
        info(f"Sync task completed: {task_status(result)}")
        return result

    def _generate(self, spec_id: str, name: str) -> tuple[str, Any]:
        """Generate the collection, always polling to learn its uid."""
        info(f'No collection found. Generating collection "{name}" from spec {spec_id}...')
        handle = self._api.generate_collection(spec_id, name)
        if not handle.accepted or handle.locator is None:
            raise ResolutionError(
                f"Failed to start collection generation (HTTP {handle.status_code}); "
                "check the API key's workspace permissions. "
                f"Response: {json.dumps(handle.payload, default=str)}"
            )

        info("Polling generation task...")
        result = self._poller.poll(handle.locator)
        if not is_success(result):
            raise TaskFailedError(_failure_message("generation", result), payload=result)

        uid = extract_collection_uid(result)
        if not uid:
            warning("Could not extract collection uid from task result, looking up by name")
            found = self._api.find_collection_by_name(name)
            if not found or not found.get("uid"):
                raise ResolutionError(
                    "Failed to extract collection uid and collection not found by name. "
                    f"Task result: {json.dumps(result, default=str)}"
                )
            uid = str(found["uid"])

        info(f"Generated Collection: {name} ({uid}), linked to spec {spec_id}")
        return uid, result
