"""Response body extraction shared by the platform wrappers.

The platform answers most calls with JSON, but a few task endpoints have
been seen to reply with an empty body or plain text. Callers always go
through :func:`extract_response_data` so those cases never raise.
"""

from __future__ import annotations

from typing import Any

import httpx


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Returns:
        The JSON-decoded body when the response declares a JSON content
        type and parses, the raw text otherwise, or ``None`` for an empty
        body.
    """
    if not response.content:
        return None

    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            pass
    return response.text
