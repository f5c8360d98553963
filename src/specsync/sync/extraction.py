"""Ordered strategies for reading a collection uid out of a task payload.

A completed generation task reports the new collection somewhere in its
payload, and the platform has used several shapes for that. Each strategy
below is a pure function ``payload -> uid or None``;
:func:`extract_collection_uid` applies :data:`EXTRACTION_STRATEGIES` in
order and returns the first hit. The engine's last resort, a fresh name
lookup, is not a strategy because it calls the platform.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

Strategy = Callable[[Any], Optional[str]]

_COLLECTIONS_SEGMENT = "/collections/"


def _dig(payload: Any, *keys: str) -> Optional[str]:
    node = payload
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    if isinstance(node, (str, int)) and str(node):
        return str(node)
    return None


def from_task_resources(payload: Any) -> Optional[str]:
    """``details.resources[]`` entry whose ``url`` points at a collection.

    The entry's ``id`` wins; otherwise the uid is cut from the URL.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("details"), dict):
        return None
    resources = payload["details"].get("resources")
    if not isinstance(resources, list):
        return None
    for resource in resources:
        if not isinstance(resource, dict):
            continue
        url = resource.get("url")
        if not isinstance(url, str) or _COLLECTIONS_SEGMENT not in url:
            continue
        if resource.get("id"):
            return str(resource["id"])
        tail = url.split(_COLLECTIONS_SEGMENT, 1)[1]
        uid = tail.split("/", 1)[0].split("?", 1)[0]
        if uid:
            return uid
    return None


def from_result_collection(payload: Any) -> Optional[str]:
    """``result.collection.uid``."""
    return _dig(payload, "result", "collection", "uid")


def from_collection(payload: Any) -> Optional[str]:
    """``collection.uid``."""
    return _dig(payload, "collection", "uid")


def from_result(payload: Any) -> Optional[str]:
    """``result.uid``."""
    return _dig(payload, "result", "uid")


def from_root(payload: Any) -> Optional[str]:
    """Top-level ``uid``."""
    return _dig(payload, "uid")


EXTRACTION_STRATEGIES: tuple[Strategy, ...] = (
    from_task_resources,
    from_result_collection,
    from_collection,
    from_result,
    from_root,
)


def extract_collection_uid(
    payload: Any,
    strategies: Sequence[Strategy] = EXTRACTION_STRATEGIES,
) -> Optional[str]:
    """Apply *strategies* in order and return the first uid found."""
    for strategy in strategies:
        uid = strategy(payload)
        if uid:
            return uid
    return None
