"""Shared test fixtures for specsync.

Provides an in-memory fake of the documentation platform served through
:class:`httpx.MockTransport`, resolved settings, a ready-to-use
:class:`~specsync.client.platform.PlatformAPI`, and output isolation.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from specsync.client import HttpClient, PlatformAPI
from specsync.models import SyncSettings
from specsync.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, colourless output manager for the test."""
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Fake platform
# ---------------------------------------------------------------------------


def _json(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=data)


class FakePlatform:
    """In-memory documentation platform answering the endpoints specsync uses.

    Every request is recorded in :attr:`calls` as ``(method, path)`` and
    in :attr:`requests` as the raw :class:`httpx.Request`.

    Task locators are answered from :attr:`task_payloads` in order; the
    last payload repeats once the list is exhausted.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.requests: list[httpx.Request] = []
        self.specs: list[dict[str, Any]] = []
        self.spec_collections: dict[str, list[dict[str, Any]]] = {}
        self.collections: list[dict[str, Any]] = []
        self.environments: list[dict[str, Any]] = []
        self.task_payloads: list[Any] = [
            {"status": "completed", "details": {"resources": [
                {"id": "col-generated", "url": "/collections/col-generated"}
            ]}}
        ]
        self.generation_status = 202
        self.collections_after_generation: list[dict[str, Any]] = []
        self.stale_environments: set[str] = set()
        self.failures: dict[tuple[str, str], int] = {}
        self.me: dict[str, Any] = {"user": {"fullName": "Ada Lovelace", "username": "ada"}}
        self._counter = 0

    # -- helpers ----------------------------------------------------------

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def calls_to(self, method: str, prefix: str = "") -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] == method and c[1].startswith(prefix)]

    def body_of(self, method: str, prefix: str) -> Any:
        """JSON body of the last matching request."""
        for request in reversed(self.requests):
            if request.method == method and request.url.path.startswith(prefix):
                return json.loads(request.content) if request.content else None
        raise AssertionError(f"no {method} {prefix} request recorded")

    def _task(self) -> Any:
        if len(self.task_payloads) > 1:
            return self.task_payloads.pop(0)
        return self.task_payloads[0]

    # -- dispatch ---------------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        self.calls.append((method, path))
        self.requests.append(request)

        for (fail_method, fail_prefix), status in self.failures.items():
            if method == fail_method and path.startswith(fail_prefix):
                return _json({"error": {"message": "injected failure"}}, status)

        parts = [p for p in path.split("/") if p]

        if path == "/me":
            return _json(self.me)
        if "tasks" in parts:
            return _json(self._task())

        if parts[:1] == ["specs"]:
            if len(parts) == 1 and method == "POST":
                body = json.loads(request.content)
                spec = {"id": self._next("spec"), "name": body["name"]}
                self.specs.append(spec)
                return _json(spec, 201)
            if len(parts) == 1 and method == "GET":
                return _json({"specs": self.specs})
            spec_id = parts[1]
            if parts[2:3] == ["files"] and method == "PATCH":
                return _json({"id": spec_id})
            if parts[2:] == ["collections"] and method == "GET":
                return _json({"collections": self.spec_collections.get(spec_id, [])})
            if parts[2:] == ["generations", "collection"] and method == "POST":
                if self.generation_status != 202:
                    return _json({"error": "forbidden"}, self.generation_status)
                self.collections.extend(self.collections_after_generation)
                return _json(
                    {"taskId": "gen-1", "url": f"/specs/{spec_id}/tasks/gen-1"}, 202
                )

        if parts[:1] == ["collections"]:
            if len(parts) == 1 and method == "GET":
                return _json({"collections": self.collections})
            if parts[2:] == ["synchronizations"] and method == "PUT":
                uid = parts[1]
                return _json(
                    {"taskId": "sync-1", "url": f"/collections/{uid}/tasks/sync-1"}, 202
                )

        if parts[:1] == ["environments"]:
            if len(parts) == 1 and method == "GET":
                return _json({"environments": self.environments})
            if len(parts) == 1 and method == "POST":
                body = json.loads(request.content)["environment"]
                env = {"uid": self._next("env"), "name": body["name"]}
                self.environments.append(env)
                return _json({"environment": env})
            if len(parts) == 2 and method == "PUT":
                uid = parts[1]
                if uid in self.stale_environments:
                    return _json({"error": {"name": "instanceNotFoundError"}}, 404)
                return _json({"environment": {"uid": uid}})

        return _json({"error": f"unrouted {method} {path}"}, 404)


# ---------------------------------------------------------------------------
# Settings and client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> SyncSettings:
    """Settings pointing at a fake base URL with fast polling."""
    return SyncSettings(
        api_key="PMAK-test-key",
        workspace_id="ws-1",
        base_url="https://api.test",
        poll={"timeout_seconds": 5, "interval_seconds": 0},
    )


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def api(settings: SyncSettings, platform: FakePlatform) -> PlatformAPI:
    """A PlatformAPI wired to :class:`FakePlatform` through MockTransport."""
    with HttpClient(settings, transport=httpx.MockTransport(platform)) as http:
        yield PlatformAPI(http, settings.workspace_id)


@pytest.fixture
def gateway_document() -> dict[str, Any]:
    """A representative HTTP API export with vendor extensions."""
    return {
        "openapi": "3.0.1",
        "info": {"title": "orders", "version": "1.0"},
        "x-amazon-apigateway-importexport-version": "1.0",
        "x-amazon-apigateway-cors": {"allowOrigins": ["*"]},
        "tags": [
            {"name": "aws:cloudformation:stack-name"},
            {"name": "httpapi:createdBy"},
            {"name": "orders"},
        ],
        "servers": [
            {
                "url": "https://a1b2c3.execute-api.us-east-1.amazonaws.com/{basePath}",
                "variables": {"basePath": {"default": "prod"}},
            }
        ],
        "paths": {
            "/orders": {
                "get": {
                    "operationId": "listOrders",
                    "responses": {"200": {"description": "ok"}},
                    "x-amazon-apigateway-integration": {"type": "aws_proxy"},
                }
            },
            "/{proxy+}": {
                "parameters": [
                    {
                        "name": "proxy+",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "string"},
                        "x-amazon-apigateway-param": {"skip": True},
                    }
                ],
                "x-amazon-apigateway-any-method": {
                    "x-amazon-apigateway-integration": {"type": "aws_proxy"}
                },
            },
        },
    }


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory with no platform credentials in the environment."""
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ("POSTMAN_API_KEY", "POSTMAN_WORKSPACE_ID", "SPECSYNC_BASE_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def environment_config_data() -> dict[str, Any]:
    """Raw environment-config document with one service and two deployments."""
    return {
        "services": {
            "orders": {
                "apiUrlPattern": "https://{apiId}.execute-api.{region}.amazonaws.com/{stage}",
                "environments": [
                    {"name": "prod-us", "region": "us-east-1", "stage": "prod", "apiId": "a1b2c3"},
                    {"name": "prod-eu", "region": "eu-west-1", "stage": "prod", "apiId": "d4e5f6"},
                ],
            }
        }
    }
