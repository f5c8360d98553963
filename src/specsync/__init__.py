"""specsync -- keep a documentation platform in step with your OpenAPI documents.

Given a ``(domain, service, stage)`` identity and an OpenAPI document
exported from an API gateway, specsync resolves (or creates) the remote
spec and its generated collection, pushes the normalised document only
when it changed, drives the platform's asynchronous generation and sync
tasks, and records the identifiers in a local state file so reruns are
cheap and safe.

Typical workflow::

    specsync preflight
    specsync export --api-id a1b2c3 --stage prod
    specsync sync --service orders --stage prod --openapi openapi.json

Modules:
    app: Typer application and CLI entry point.
    sync: Reconciliation engine, task poller and environment upsert.
    transform: Document normalisation and server enrichment.
    client: HTTP client and platform endpoint wrappers.
    state: Local state file.
    models: Pydantic models shared across the package.
    config: Settings resolution and file helpers.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr discipline with Rich support.
"""

__version__ = "0.1.0"
