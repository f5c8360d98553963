"""Tests for the preflight checker."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Sequence

import httpx
import pytest

from specsync.exceptions import GatewayExportError
from specsync.preflight import PreflightChecker

WORKSPACE = "0f8fad5b-d9cb-469f-a165-70867728950e"


def _aws_ok(args: Sequence[str]) -> subprocess.CompletedProcess[str]:
    stdout = json.dumps({"Arn": "arn:aws:iam::123456789012:user/ci"})
    return subprocess.CompletedProcess(list(args), 0, stdout=stdout, stderr="")


def _aws_denied(args: Sequence[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(list(args), 255, stdout="", stderr="ExpiredToken")


def _me(status_code: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/me"
        if status_code != 200:
            return httpx.Response(status_code, json={"error": {"message": "Invalid API Key"}})
        return httpx.Response(200, json={"user": {"fullName": "Ada Lovelace"}})

    return httpx.MockTransport(handler)


@pytest.fixture
def aws_installed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("specsync.preflight.shutil.which", lambda name: "/usr/bin/aws")


def _checker(tmp_path: Path, **kwargs) -> PreflightChecker:
    defaults = dict(
        api_key="PMAK-abcdefgh1234",
        workspace_id=WORKSPACE,
        base_url="https://api.test",
        state_file=tmp_path / "state.json",
        runner=_aws_ok,
        transport=_me(),
    )
    defaults.update(kwargs)
    return PreflightChecker(**defaults)


def _by_name(report, name: str):
    return next(c for c in report.checks if c.name == name)


class TestRunAll:
    def test_all_pass(self, tmp_path: Path, aws_installed, quiet_output) -> None:
        (tmp_path / "state.json").write_text("{}", encoding="utf-8")
        report = _checker(tmp_path).run_all()

        assert report.passed
        assert report.warnings == []
        assert _by_name(report, "AWS credentials").message.endswith("user/ci")
        assert _by_name(report, "Platform API authentication").message == (
            "Authenticated as Ada Lovelace"
        )

    def test_missing_state_file_is_only_a_warning(
        self, tmp_path: Path, aws_installed, quiet_output
    ) -> None:
        report = _checker(tmp_path).run_all()
        assert report.passed
        assert [w.name for w in report.warnings] == ["State file"]

    def test_report_as_dict(self, tmp_path: Path, aws_installed, quiet_output) -> None:
        data = _checker(tmp_path).run_all().as_dict()
        assert data["passed"] is True
        assert {c["name"] for c in data["checks"]} >= {"POSTMAN_API_KEY", "State file"}


class TestAwsChecks:
    def test_cli_missing(self, tmp_path: Path, monkeypatch, quiet_output) -> None:
        monkeypatch.setattr("specsync.preflight.shutil.which", lambda name: None)
        checker = _checker(tmp_path)
        assert checker.check_aws_cli() is False
        assert [c.name for c in checker.report.checks] == ["AWS CLI installed"]

    def test_credentials_rejected(self, tmp_path: Path, aws_installed, quiet_output) -> None:
        checker = _checker(tmp_path, runner=_aws_denied)
        assert checker.check_aws_cli() is False
        assert _by_name(checker.report, "AWS credentials").message == "ExpiredToken"

    def test_runner_error_is_a_failed_check(
        self, tmp_path: Path, aws_installed, quiet_output
    ) -> None:
        def broken(args: Sequence[str]) -> subprocess.CompletedProcess[str]:
            raise GatewayExportError("AWS CLI timed out")

        checker = _checker(tmp_path, runner=broken)
        assert checker.check_aws_cli() is False
        assert "timed out" in _by_name(checker.report, "AWS credentials").message


class TestPlatformChecks:
    def test_missing_api_key(self, tmp_path: Path, quiet_output) -> None:
        checker = _checker(tmp_path, api_key=None)
        assert checker.check_api_key() is False
        assert checker.report.failures[0].suggestion.startswith("Export POSTMAN_API_KEY")

    def test_rejected_api_key(self, tmp_path: Path, quiet_output) -> None:
        checker = _checker(tmp_path, transport=_me(401))
        assert checker.check_api_key() is False
        assert "HTTP 401" in _by_name(checker.report, "Platform API authentication").message

    def test_non_uuid_workspace_warns(self, tmp_path: Path, quiet_output) -> None:
        checker = _checker(tmp_path, workspace_id="my-workspace")
        assert checker.check_workspace_id() is True
        assert checker.report.passed
        assert [w.name for w in checker.report.warnings] == ["POSTMAN_WORKSPACE_ID format"]

    def test_missing_workspace(self, tmp_path: Path, quiet_output) -> None:
        checker = _checker(tmp_path, workspace_id=None)
        assert checker.check_workspace_id() is False

    def test_invalid_state_json_warns(self, tmp_path: Path, quiet_output) -> None:
        (tmp_path / "state.json").write_text("{not json", encoding="utf-8")
        checker = _checker(tmp_path)
        assert checker.check_state_file() is True
        assert "not valid JSON" in checker.report.warnings[0].message
