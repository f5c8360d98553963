"""Integration tests for the specsync CLI."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from specsync import __version__
from specsync.app import app, main
from specsync.client import HttpClient
from specsync.exceptions import ConfigError, SpecsyncError

runner = CliRunner()

CREDENTIALS = ["--api-key", "PMAK-cli", "--workspace-id", "ws-cli", "--base-url", "https://api.test"]


def _route_http(monkeypatch: pytest.MonkeyPatch, module: str, platform) -> None:
    """Point ``module.HttpClient`` at the fake platform."""
    monkeypatch.setattr(
        f"{module}.HttpClient",
        lambda settings: HttpClient(settings, transport=httpx.MockTransport(platform)),
    )


def _write_document(directory: Path, document: dict[str, Any]) -> Path:
    path = directory / "openapi.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestRoot:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "sync" in result.output


class TestSyncCommand:
    def test_sync_prints_result_json(
        self, isolated_cwd: Path, platform, gateway_document, monkeypatch
    ) -> None:
        _route_http(monkeypatch, "specsync.commands.sync", platform)
        _write_document(isolated_cwd, gateway_document)

        result = runner.invoke(
            app,
            CREDENTIALS
            + ["-q", "sync", "--service", "orders", "--stage", "prod", "--openapi", "openapi.json"],
        )

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["key"] == "demo:orders:prod"
        assert summary["collection_uid"] == "col-generated"
        assert summary["spec_source"] == "created"

        state = json.loads(
            (isolated_cwd / "state" / "postman-ingestion-state.json").read_text(encoding="utf-8")
        )
        assert state["entries"]["demo:orders:prod"]["specId"] == summary["spec_id"]
        assert platform.requests[0].headers["x-api-key"] == "PMAK-cli"

    def test_sync_uses_environment_file(
        self, isolated_cwd: Path, platform, gateway_document, environment_config_data, monkeypatch
    ) -> None:
        _route_http(monkeypatch, "specsync.commands.sync", platform)
        _write_document(isolated_cwd, gateway_document)
        (isolated_cwd / "config").mkdir()
        (isolated_cwd / "config" / "environments.json").write_text(
            json.dumps(environment_config_data), encoding="utf-8"
        )

        result = runner.invoke(
            app,
            CREDENTIALS
            + ["-q", "sync", "--service", "orders", "--stage", "prod", "--openapi", "openapi.json"],
        )

        assert result.exit_code == 0, result.output
        assert set(json.loads(result.stdout)["environments"]) == {"prod-us", "prod-eu"}

    def test_missing_credentials(self, isolated_cwd: Path, gateway_document) -> None:
        _write_document(isolated_cwd, gateway_document)
        result = runner.invoke(
            app, ["sync", "--service", "orders", "--stage", "prod", "--openapi", "openapi.json"]
        )
        assert result.exit_code != 0
        assert isinstance(result.exception, ConfigError)

    def test_missing_document(self, isolated_cwd: Path) -> None:
        result = runner.invoke(
            app,
            CREDENTIALS
            + ["sync", "--service", "orders", "--stage", "prod", "--openapi", "missing.json"],
        )
        assert isinstance(result.exception, SpecsyncError)
        assert result.exception.exit_code == 7


class TestEnvCommand:
    def test_creates_then_updates(
        self, isolated_cwd: Path, platform, gateway_document, monkeypatch
    ) -> None:
        _route_http(monkeypatch, "specsync.commands.env", platform)
        _write_document(isolated_cwd, gateway_document)
        args = CREDENTIALS + [
            "-q",
            "env",
            "upsert",
            "--domain",
            "payments",
            "--service",
            "refunds",
            "--stage",
            "prod",
            "--region",
            "us-east-1",
            "--openapi",
            "openapi.json",
        ]

        first = runner.invoke(app, args)
        assert first.exit_code == 0, first.output
        created = json.loads(first.stdout)
        assert created["name"] == "[payments] refunds #env-us-east-1-prod"
        assert created["action"] == "created"

        values = platform.body_of("POST", "/environments")["environment"]["values"]
        base_url = next(v["value"] for v in values if v["key"] == "baseUrl")
        assert base_url == "https://a1b2c3.execute-api.us-east-1.amazonaws.com/{basePath}"

        second = runner.invoke(app, args)
        assert second.exit_code == 0, second.output
        updated = json.loads(second.stdout)
        assert updated == {**created, "action": "updated"}

    def test_explicit_uid_skips_lookup(self, isolated_cwd: Path, platform, monkeypatch) -> None:
        _route_http(monkeypatch, "specsync.commands.env", platform)
        result = runner.invoke(
            app,
            CREDENTIALS
            + [
                "-q",
                "env",
                "upsert",
                "--domain",
                "d",
                "--service",
                "s",
                "--stage",
                "dev",
                "--base-url",
                "https://explicit",
                "--env-uid",
                "env-known",
            ],
        )
        assert result.exit_code == 0, result.output
        assert platform.calls_to("GET", "/environments") == []
        assert platform.calls_to("PUT", "/environments/env-known")


class TestStateCommand:
    def _write_state(self, directory: Path) -> Path:
        path = directory / "state.json"
        path.write_text(
            json.dumps({"entries": {"demo:orders:prod": {"specId": "s1", "collectionUid": "c1"}}}),
            encoding="utf-8",
        )
        return path

    def test_show_all(self, isolated_cwd: Path) -> None:
        path = self._write_state(isolated_cwd)
        result = runner.invoke(app, ["-q", "state", "show", "--state-file", str(path)])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["entries"]["demo:orders:prod"]["specId"] == "s1"

    def test_json_flag_prints_plain_json_on_terminal(
        self, isolated_cwd: Path, monkeypatch
    ) -> None:
        monkeypatch.setattr("specsync.output._is_tty", lambda: True)
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        path = self._write_state(isolated_cwd)

        result = runner.invoke(
            app,
            ["--json", "-q", "state", "show", "--state-file", str(path), "--key", "demo:orders:prod"],
        )

        assert result.exit_code == 0, result.output
        assert result.stdout == json.dumps({"specId": "s1", "collectionUid": "c1"}, indent=2) + "\n"

    def test_show_one_key(self, isolated_cwd: Path) -> None:
        path = self._write_state(isolated_cwd)
        result = runner.invoke(
            app, ["-q", "state", "show", "--state-file", str(path), "--key", "demo:orders:prod"]
        )
        assert json.loads(result.stdout) == {"specId": "s1", "collectionUid": "c1"}


class TestExportCommand:
    def test_passes_options(self, isolated_cwd: Path, monkeypatch) -> None:
        calls: list[tuple[Any, ...]] = []
        monkeypatch.setattr(
            "specsync.commands.export.export_openapi",
            lambda api_id, stage, api_type=None, output=None: calls.append(
                (api_id, stage, api_type, output)
            ),
        )
        result = runner.invoke(
            app, ["export", "--api-id", "a1", "--stage", "prod", "--api-type", "rest", "-o", "x.json"]
        )
        assert result.exit_code == 0, result.output
        assert calls == [("a1", "prod", "rest", Path("x.json"))]


class TestMain:
    def test_specsync_error_maps_to_exit_code(
        self, isolated_cwd: Path, monkeypatch
    ) -> None:
        monkeypatch.setattr(sys, "argv", ["specsync", "state", "show", "--key", "nope"])
        with pytest.raises(SystemExit) as info:
            main()
        assert info.value.code == 4

    def test_unexpected_error_writes_crash_log(
        self, isolated_cwd: Path, monkeypatch
    ) -> None:
        def _boom(path):
            raise RuntimeError("kaboom")

        monkeypatch.setattr("specsync.commands.state.load_state", _boom)
        monkeypatch.setattr(sys, "argv", ["specsync", "state", "show"])
        with pytest.raises(SystemExit) as info:
            main()

        assert info.value.code == 1
        logs = list((isolated_cwd / "data" / "specsync" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "kaboom" in logs[0].read_text()

    def test_success_exits_zero(self, isolated_cwd: Path, monkeypatch) -> None:
        monkeypatch.setattr(sys, "argv", ["specsync", "-q", "state", "show"])
        with pytest.raises(SystemExit) as info:
            main()
        assert info.value.code == 0


class TestPreflightCommand:
    def test_failing_check_exits_non_zero(self, isolated_cwd: Path, monkeypatch) -> None:
        monkeypatch.setattr("specsync.preflight.shutil.which", lambda name: None)
        monkeypatch.setattr(
            "specsync.preflight.HttpClient",
            lambda settings, transport=None: HttpClient(
                settings, transport=httpx.MockTransport(lambda r: httpx.Response(200, json={}))
            ),
        )
        result = runner.invoke(app, CREDENTIALS + ["-q", "preflight"])
        assert result.exit_code == 1
