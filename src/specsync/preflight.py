"""Pre-run environment checks.

:class:`PreflightChecker` verifies everything a ``sync`` run depends on
before touching any remote asset:

* the AWS CLI is installed and has credentials (needed by ``export``);
* an API key is set and accepted by ``GET /me``;
* a workspace id is set (a non-UUID id is only a warning);
* the state file, if present, is valid JSON (a missing file is only a
  warning, it is created on first run).

Each check produces a :class:`CheckResult`. Failed checks make the report
fail; warnings never do.
"""

from __future__ import annotations

import json
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import httpx

from specsync.client.http import HttpClient
from specsync.client.platform import PlatformAPI
from specsync.config import DEFAULT_STATE_FILE
from specsync.exceptions import AuthError, SpecsyncError
from specsync.gateway import Runner, run_aws
from specsync.models import DEFAULT_BASE_URL, SyncSettings
from specsync.output import error, info, success, suggest, warning

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


@dataclass
class CheckResult:
    """Outcome of one preflight check."""

    name: str
    passed: bool
    message: str = ""
    suggestion: str = ""
    warning: bool = False


@dataclass
class PreflightReport:
    """All check results of one preflight run."""

    checks: list[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def failures(self) -> list[CheckResult]:
        return [check for check in self.checks if not check.passed]

    @property
    def warnings(self) -> list[CheckResult]:
        return [check for check in self.checks if check.warning]

    def as_dict(self) -> dict[str, object]:
        return {
            "passed": self.passed,
            "checks": [
                {
                    "name": c.name,
                    "passed": c.passed,
                    "warning": c.warning,
                    "message": c.message,
                }
                for c in self.checks
            ],
        }


class PreflightChecker:
    """Run the preflight checks.

    Credentials are taken as plain values rather than a resolved
    :class:`~specsync.models.SyncSettings` so that a missing key is
    reported as a failed check instead of aborting the run.

    Args:
        api_key: Platform API key, if any.
        workspace_id: Workspace id, if any.
        base_url: Platform base URL.
        state_file: State file location.
        runner: AWS CLI runner, replaceable in tests.
        transport: Optional httpx transport for the ``/me`` call.
    """

    def __init__(
        self,
        api_key: Optional[str],
        workspace_id: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        state_file: str | Path = DEFAULT_STATE_FILE,
        runner: Runner = run_aws,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.workspace_id = workspace_id
        self.base_url = base_url
        self.state_file = Path(state_file)
        self._runner = runner
        self._transport = transport
        self.report = PreflightReport()

    def _record(self, result: CheckResult) -> CheckResult:
        self.report.checks.append(result)
        return result

    # ------------------------------------------------------------------ #
    # Checks
    # ------------------------------------------------------------------ #

    def check_aws_cli(self) -> bool:
        if shutil.which("aws") is None:
            self._record(
                CheckResult(
                    "AWS CLI installed",
                    False,
                    "aws command not found",
                    "Install the AWS CLI: https://docs.aws.amazon.com/cli/latest/userguide/getting-started-install.html",
                )
            )
            return False
        self._record(CheckResult("AWS CLI installed", True, "aws command found"))

        try:
            result = self._runner(["aws", "sts", "get-caller-identity", "--output", "json"])
        except SpecsyncError as exc:
            result = None
            message = str(exc)
        else:
            message = result.stderr.strip() if result.returncode != 0 else ""
        if result is None or result.returncode != 0:
            self._record(
                CheckResult(
                    "AWS credentials",
                    False,
                    message or "Unable to authenticate with AWS",
                    "Run: aws configure (or check the AWS_PROFILE environment variable)",
                )
            )
            return False

        try:
            arn = json.loads(result.stdout).get("Arn", "unknown identity")
        except (json.JSONDecodeError, AttributeError):
            arn = "unknown identity"
        self._record(CheckResult("AWS credentials", True, f"Authenticated as {arn}"))
        return True

    def check_api_key(self) -> bool:
        if not self.api_key:
            self._record(
                CheckResult(
                    "POSTMAN_API_KEY",
                    False,
                    "Not set",
                    "Export POSTMAN_API_KEY or pass --api-key",
                )
            )
            return False
        self._record(CheckResult("POSTMAN_API_KEY", True, f"Set ({self.api_key[:8]}...)"))

        settings = SyncSettings(
            api_key=self.api_key,
            workspace_id=self.workspace_id or "",
            base_url=self.base_url,
        )
        try:
            with HttpClient(settings, transport=self._transport) as http:
                me = PlatformAPI(http, settings.workspace_id).get_me()
        except AuthError as exc:
            self._record(
                CheckResult(
                    "Platform API authentication",
                    False,
                    f"HTTP {exc.status_code}: API key is invalid or lacks permissions",
                    "Regenerate the API key and make sure it has workspace write access",
                )
            )
            return False
        except SpecsyncError as exc:
            self._record(
                CheckResult(
                    "Platform API authentication",
                    False,
                    str(exc).splitlines()[0],
                    "Check connectivity and the platform status",
                )
            )
            return False

        who = me.get("fullName") or me.get("username") or "user"
        self._record(CheckResult("Platform API authentication", True, f"Authenticated as {who}"))
        return True

    def check_workspace_id(self) -> bool:
        if not self.workspace_id:
            self._record(
                CheckResult(
                    "POSTMAN_WORKSPACE_ID",
                    False,
                    "Not set",
                    "Export POSTMAN_WORKSPACE_ID or pass --workspace-id",
                )
            )
            return False
        if not _UUID_RE.match(self.workspace_id):
            self._record(
                CheckResult(
                    "POSTMAN_WORKSPACE_ID format",
                    True,
                    "Does not appear to be a valid UUID",
                    "Verify the workspace id was copied correctly",
                    warning=True,
                )
            )
        self._record(CheckResult("POSTMAN_WORKSPACE_ID", True, self.workspace_id))
        return True

    def check_state_file(self) -> bool:
        if not self.state_file.is_file():
            self._record(
                CheckResult(
                    "State file",
                    True,
                    f"{self.state_file} does not exist",
                    "It will be created on the first run",
                    warning=True,
                )
            )
            return True
        try:
            json.loads(self.state_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            self._record(
                CheckResult(
                    "State file",
                    True,
                    f"{self.state_file} is not valid JSON",
                    "It will be overwritten on the next run",
                    warning=True,
                )
            )
            return True
        self._record(CheckResult("State file", True, "Valid JSON"))
        return True

    # ------------------------------------------------------------------ #
    # Driver
    # ------------------------------------------------------------------ #

    def run_all(self) -> PreflightReport:
        """Run every check and print the results to stderr."""
        self.report = PreflightReport()
        self.check_aws_cli()
        self.check_api_key()
        self.check_workspace_id()
        self.check_state_file()

        for check in self.report.checks:
            detail = f": {check.message}" if check.message else ""
            if not check.passed:
                error(f"{check.name}{detail}")
            elif check.warning:
                warning(f"{check.name}{detail}")
            else:
                success(f"{check.name}{detail}")
            if check.suggestion and (check.warning or not check.passed):
                suggest(check.suggestion)

        total = len(self.report.checks)
        failed = len(self.report.failures)
        info(f"{total - failed}/{total} checks passed, {len(self.report.warnings)} warning(s)")
        return self.report
