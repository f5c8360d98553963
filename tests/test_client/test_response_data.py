"""Tests for specsync.client.response."""

from __future__ import annotations

import httpx

from specsync.client.response import extract_response_data


def test_json_body() -> None:
    assert extract_response_data(httpx.Response(200, json={"a": 1})) == {"a": 1}


def test_text_body() -> None:
    response = httpx.Response(200, text="ok", headers={"content-type": "text/plain"})
    assert extract_response_data(response) == "ok"


def test_empty_body() -> None:
    assert extract_response_data(httpx.Response(202, content=b"")) is None


def test_malformed_json_falls_back_to_text() -> None:
    response = httpx.Response(
        200, content=b"{broken", headers={"content-type": "application/json"}
    )
    assert extract_response_data(response) == "{broken"
