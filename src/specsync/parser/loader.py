"""Read the exported OpenAPI document from a local file or stdin.

The gateway export normally produces JSON, but hand-maintained documents
are often YAML, so both formats are accepted with automatic detection.
Documents above :data:`MAX_DOCUMENT_BYTES` are rejected before any remote
call is made because the platform refuses oversized spec files.

The two public functions are:

* :func:`load_document` -- Load and parse a document from a path or ``-``.
* :func:`spec_type_for` -- Map the ``openapi`` version field to the
  platform's spec type (``OPENAPI:3.0`` or ``OPENAPI:3.1``).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import yaml

from specsync.exceptions import InvalidUsageError, SpecParseError

MAX_DOCUMENT_BYTES = 10 * 1024 * 1024


def load_document(source: str, max_bytes: int = MAX_DOCUMENT_BYTES) -> dict[str, Any]:
    """Load an OpenAPI document from a file path or stdin (``-``).

    Args:
        source: A file path, or ``-`` to read stdin.
        max_bytes: Size limit; larger documents are rejected.

    Returns:
        The parsed document as a dictionary.

    Raises:
        InvalidUsageError: If the document exceeds *max_bytes*.
        SpecParseError: If the source cannot be read or parsed.
    """
    if source == "-":
        try:
            content = sys.stdin.read()
        except OSError as exc:
            raise SpecParseError(f"Failed to read from stdin: {exc}") from exc
        hint = ""
    else:
        path = Path(source)
        if not path.is_file():
            raise SpecParseError(f"OpenAPI document not found: {source}")
        size = path.stat().st_size
        if size > max_bytes:
            raise InvalidUsageError(
                f"OpenAPI document {source} is {size} bytes, "
                f"above the {max_bytes // (1024 * 1024)} MB limit"
            )
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SpecParseError(f"Failed to read {source}: {exc}") from exc
        suffix = path.suffix.lower()
        hint = "json" if suffix == ".json" else "yaml" if suffix in (".yaml", ".yml") else ""

    if len(content.encode("utf-8")) > max_bytes:
        raise InvalidUsageError(
            f"OpenAPI document exceeds the {max_bytes // (1024 * 1024)} MB limit"
        )
    if not content.strip():
        raise SpecParseError(f"OpenAPI document is empty: {source}")

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    JSON is tried first unless the hint says YAML; a ``.json`` file that
    fails JSON parsing is reported without a YAML retry.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            json_error = exc
        else:
            return _require_object(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse document as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc
    return _require_object(result)


def _require_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"OpenAPI document must be an object (got {kind})")
    return result


def spec_type_for(document: dict[str, Any]) -> str:
    """Return the platform spec type for *document*.

    Only the major.minor of the ``openapi`` field is inspected; anything
    that is not 3.1 is sent as 3.0, which is what gateway exports declare.
    """
    version = str(document.get("openapi", ""))
    if version.startswith("3.1"):
        return "OPENAPI:3.1"
    return "OPENAPI:3.0"
