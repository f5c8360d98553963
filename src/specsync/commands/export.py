"""Export command -- pull the OpenAPI document of a deployed stage."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from specsync.gateway import export_openapi


def export_command(
    api_id: str = typer.Option(..., "--api-id", help="API Gateway id."),
    stage: str = typer.Option(..., "--stage", help="Stage name."),
    api_type: Optional[str] = typer.Option(
        None, "--api-type", help="'http' or 'rest' (auto-detected when omitted)."
    ),
    output: Path = typer.Option(Path("openapi.json"), "--output", "-o", help="Output file."),
) -> None:
    """Export an OpenAPI 3.0 document from AWS API Gateway.

    Example::

        specsync export --api-id a1b2c3 --stage prod
        specsync export --api-id a1b2c3 --stage prod --api-type rest -o rest.json
    """
    export_openapi(api_id, stage, api_type=api_type, output=output)
