"""Export an OpenAPI document from AWS API Gateway via the AWS CLI.

HTTP APIs (v2) and REST APIs (v1) use different export commands. When
the API type is not given it is detected by asking for the API as an
HTTP API first, then as a REST API::

    aws apigatewayv2 get-api --api-id <id>
    aws apigateway get-rest-api --rest-api-id <id>

The AWS CLI must be installed and configured; credentials are never
handled here.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from specsync.exceptions import GatewayExportError, InvalidUsageError
from specsync.output import debug, info, success, suggest

API_TYPE_HTTP = "http"
API_TYPE_REST = "rest"
API_TYPES = (API_TYPE_HTTP, API_TYPE_REST)

Runner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]


def run_aws(args: Sequence[str]) -> "subprocess.CompletedProcess[str]":
    """Run an AWS CLI command, capturing its output.

    Raises:
        GatewayExportError: If the ``aws`` binary is not installed.
    """
    debug(f"Running: {' '.join(args)}")
    try:
        return subprocess.run(list(args), capture_output=True, text=True, timeout=120)
    except FileNotFoundError as exc:
        raise GatewayExportError("AWS CLI not found: install it and configure credentials") from exc
    except subprocess.TimeoutExpired as exc:
        raise GatewayExportError(f"AWS CLI timed out: {' '.join(args)}") from exc


def detect_api_type(api_id: str, runner: Runner = run_aws) -> str:
    """Return ``"http"`` or ``"rest"`` for *api_id*.

    Raises:
        GatewayExportError: If the API is found as neither type.
    """
    info(f"Detecting API type for {api_id}...")
    http_result = runner(["aws", "apigatewayv2", "get-api", "--api-id", api_id])
    if http_result.returncode == 0:
        info("  Detected: HTTP API (v2)")
        return API_TYPE_HTTP

    rest_result = runner(["aws", "apigateway", "get-rest-api", "--rest-api-id", api_id])
    if rest_result.returncode == 0:
        info("  Detected: REST API (v1)")
        return API_TYPE_REST

    raise GatewayExportError(
        f"Could not detect API type for {api_id}; pass --api-type http or --api-type rest.\n"
        f"  HTTP API v2 error: {http_result.stderr.strip()}\n"
        f"  REST API v1 error: {rest_result.stderr.strip()}"
    )


def export_command(api_type: str, api_id: str, stage: str, output: Path) -> list[str]:
    """Build the AWS CLI export command for *api_type*."""
    if api_type == API_TYPE_HTTP:
        return [
            "aws", "apigatewayv2", "export-api",
            "--api-id", api_id,
            "--output-type", "JSON",
            "--specification", "OAS30",
            "--stage-name", stage,
            str(output),
        ]
    return [
        "aws", "apigateway", "get-export",
        "--rest-api-id", api_id,
        "--stage-name", stage,
        "--export-type", "oas30",
        "--parameters", "extensions=postman",
        "--accepts", "application/json",
        str(output),
    ]


def export_openapi(
    api_id: str,
    stage: str,
    api_type: Optional[str] = None,
    output: Path = Path("openapi.json"),
    runner: Runner = run_aws,
) -> Path:
    """Export the OpenAPI 3.0 document of a deployed API stage.

    Args:
        api_id: API Gateway id.
        stage: Stage name.
        api_type: ``"http"`` or ``"rest"``; auto-detected when omitted.
        output: Destination file.
        runner: Command runner, replaceable in tests.

    Returns:
        The path of the written document.

    Raises:
        InvalidUsageError: If *api_type* is not a known type.
        GatewayExportError: If detection or export fails, or the exported
            file is missing or empty.
    """
    if api_type:
        api_type = api_type.lower()
        if api_type not in API_TYPES:
            raise InvalidUsageError(f'Invalid API type: {api_type}. Must be "http" or "rest"')
    else:
        api_type = detect_api_type(api_id, runner)

    label = "HTTP API (v2)" if api_type == API_TYPE_HTTP else "REST API (v1)"
    info(f"Exporting {label} {api_id} from stage {stage}...")
    result = runner(export_command(api_type, api_id, stage, output))
    if result.returncode != 0:
        suggest("Verify the API id and stage name, and that AWS credentials are configured")
        raise GatewayExportError(f"Failed to export {label}: {result.stderr.strip()}")

    if not output.is_file():
        raise GatewayExportError(f"{output} was not created")
    size = output.stat().st_size
    if size == 0:
        raise GatewayExportError(f"{output} is empty")

    success(f"Exported to {output} ({size / 1024:.2f} KB)")
    return output
