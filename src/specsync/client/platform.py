"""Typed wrappers around the documentation platform's REST endpoints.

Each method maps to exactly one HTTP call on :class:`HttpClient` and
normalises the handful of response shapes the platform has used over time
(``{"specs": [...]}`` versus a bare list, ``{"environment": {...}}``
versus a bare object). No method swallows errors: a failed lookup is as
fatal as a failed write.

Endpoints used::

    POST  /specs?workspaceId=                          create spec
    PATCH /specs/{id}/files/{path}                     replace file content
    GET   /specs?workspaceId=                          list specs
    GET   /specs/{id}/collections                      spec's generated collections
    POST  /specs/{id}/generations/collection?workspaceId=   start generation (202)
    PUT   /collections/{uid}/synchronizations?specId=  start sync (202)
    GET   /collections?workspaceId=                    list collections
    GET   /environments?workspaceId=                   list environments
    POST  /environments?workspaceId=                   create environment
    PUT   /environments/{uid}                          update environment
    GET   /me                                          identify the API key owner
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

from specsync.client.http import HttpClient
from specsync.client.response import extract_response_data
from specsync.exceptions import ResolutionError

GENERATION_OPTIONS: dict[str, Any] = {
    "requestNameSource": "Fallback",
    "indentCharacter": "Space",
    "parametersResolution": "Schema",
    "folderStrategy": "Paths",
    "includeAuthInfoInExample": True,
    "enableOptionalParameters": True,
    "keepImplicitHeaders": False,
    "includeDeprecated": True,
    "alwaysInheritAuthentication": False,
    "nestedFolderHierarchy": False,
}


@dataclass
class TaskHandle:
    """Outcome of a request that starts an asynchronous platform task.

    Attributes:
        accepted: ``True`` when the platform answered ``202 Accepted``.
        status_code: The HTTP status actually returned.
        payload: Response body, typically ``{"taskId": ..., "url": ...}``.
    """

    accepted: bool
    status_code: int
    payload: Any = None

    @property
    def locator(self) -> Optional[str]:
        """Pollable task URL, if the payload carries one."""
        if isinstance(self.payload, dict):
            url = self.payload.get("url")
            if isinstance(url, str) and url:
                return url
        return None


def _segment(value: str) -> str:
    """Percent-encode a value for use as a single path segment."""
    return quote(value, safe="")


def _items(data: Any, *keys: str) -> list[dict[str, Any]]:
    """Pull a list out of *data* under the first matching key, or *data* itself."""
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return [item for item in value if isinstance(item, dict)]
        return []
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    return []


def _find_by_name(items: list[dict[str, Any]], name: str) -> Optional[dict[str, Any]]:
    for item in items:
        if item.get("name") == name:
            return item
    return None


class PlatformAPI:
    """Documentation-platform operations scoped to one workspace.

    Args:
        http: An entered :class:`HttpClient`.
        workspace_id: Workspace that owns every created asset.
    """

    def __init__(self, http: HttpClient, workspace_id: str) -> None:
        self._http = http
        self.workspace_id = workspace_id

    @property
    def _workspace(self) -> dict[str, str]:
        return {"workspaceId": self.workspace_id}

    # ------------------------------------------------------------------ #
    # Specs
    # ------------------------------------------------------------------ #

    def create_spec(
        self,
        name: str,
        file_path: str,
        content: str,
        spec_type: str = "OPENAPI:3.0",
    ) -> str:
        """Create a spec whose root file holds *content*.

        Returns:
            The new spec id.

        Raises:
            ResolutionError: If the response carries no recognisable id.
        """
        body = {
            "name": name,
            "type": spec_type,
            "files": [{"path": file_path, "content": content}],
        }
        data = extract_response_data(
            self._http.post("/specs", params=self._workspace, json_body=body)
        )
        spec_id: Any = None
        if isinstance(data, dict):
            spec_id = data.get("id")
            if not spec_id and isinstance(data.get("spec"), dict):
                spec_id = data["spec"].get("id")
        elif isinstance(data, str):
            spec_id = data.strip() or None
        if not spec_id:
            raise ResolutionError(f"Failed to resolve spec id from create response: {data!r}")
        return str(spec_id)

    def patch_spec_file(self, spec_id: str, file_path: str, content: str) -> Any:
        """Replace the content of one spec file.

        The platform accepts exactly one property per PATCH, so the body
        only ever holds ``content``.
        """
        path = f"/specs/{_segment(spec_id)}/files/{_segment(file_path)}"
        return extract_response_data(self._http.patch(path, json_body={"content": content}))

    def list_specs(self) -> list[dict[str, Any]]:
        """List the specs of the workspace."""
        data = extract_response_data(self._http.get("/specs", params=self._workspace))
        return _items(data, "specs")

    def find_spec_by_name(self, name: str) -> Optional[dict[str, Any]]:
        """Return the first spec named exactly *name*, or ``None``."""
        return _find_by_name(self.list_specs(), name)

    def list_spec_collections(self, spec_id: str) -> list[dict[str, Any]]:
        """List the collections generated from a spec."""
        data = extract_response_data(
            self._http.get(f"/specs/{_segment(spec_id)}/collections")
        )
        return _items(data, "collections")

    def generate_collection(
        self,
        spec_id: str,
        name: str,
        options: Optional[dict[str, Any]] = None,
    ) -> TaskHandle:
        """Start generating a collection linked to *spec_id*."""
        body = {"name": name, "options": dict(options or GENERATION_OPTIONS)}
        response = self._http.post(
            f"/specs/{_segment(spec_id)}/generations/collection",
            params=self._workspace,
            json_body=body,
        )
        return TaskHandle(
            accepted=response.status_code == 202,
            status_code=response.status_code,
            payload=extract_response_data(response),
        )

    # ------------------------------------------------------------------ #
    # Collections
    # ------------------------------------------------------------------ #

    def sync_collection(self, collection_uid: str, spec_id: str) -> TaskHandle:
        """Start synchronising a collection with its linked spec."""
        response = self._http.put(
            f"/collections/{_segment(collection_uid)}/synchronizations",
            params={"specId": spec_id},
        )
        return TaskHandle(
            accepted=response.status_code == 202,
            status_code=response.status_code,
            payload=extract_response_data(response),
        )

    def list_collections(self) -> list[dict[str, Any]]:
        """List the collections of the workspace."""
        data = extract_response_data(self._http.get("/collections", params=self._workspace))
        return _items(data, "collections", "collection")

    def find_collection_by_name(self, name: str) -> Optional[dict[str, Any]]:
        """Return the first collection named exactly *name*, or ``None``."""
        return _find_by_name(self.list_collections(), name)

    # ------------------------------------------------------------------ #
    # Tasks
    # ------------------------------------------------------------------ #

    def get_task(self, locator: str) -> Any:
        """Fetch the current state of a task from its locator."""
        return extract_response_data(self._http.get(locator))

    # ------------------------------------------------------------------ #
    # Environments
    # ------------------------------------------------------------------ #

    def list_environments(self) -> list[dict[str, Any]]:
        """List the environments of the workspace."""
        data = extract_response_data(self._http.get("/environments", params=self._workspace))
        return _items(data, "environments", "environment")

    def find_environment_by_name(self, name: str) -> Optional[dict[str, Any]]:
        """Return the first environment named exactly *name*, or ``None``."""
        return _find_by_name(self.list_environments(), name)

    def create_environment(self, name: str, values: list[dict[str, Any]]) -> str:
        """Create an environment and return its uid.

        Raises:
            ResolutionError: If the response carries no uid.
        """
        data = extract_response_data(
            self._http.post(
                "/environments",
                params=self._workspace,
                json_body={"environment": {"name": name, "values": values}},
            )
        )
        uid = None
        if isinstance(data, dict):
            environment = data.get("environment")
            if isinstance(environment, dict):
                uid = environment.get("uid")
            uid = uid or data.get("uid")
        if not uid:
            raise ResolutionError(f"Failed to resolve environment uid from create response: {data!r}")
        return str(uid)

    def update_environment(self, uid: str, name: str, values: list[dict[str, Any]]) -> str:
        """Replace an environment's name and values, returning the uid in effect."""
        data = extract_response_data(
            self._http.put(
                f"/environments/{_segment(uid)}",
                json_body={"environment": {"name": name, "values": values}},
            )
        )
        if isinstance(data, dict) and isinstance(data.get("environment"), dict):
            return str(data["environment"].get("uid") or uid)
        return uid

    # ------------------------------------------------------------------ #
    # Account
    # ------------------------------------------------------------------ #

    def get_me(self) -> dict[str, Any]:
        """Identify the owner of the API key."""
        data = extract_response_data(self._http.get("/me"))
        if isinstance(data, dict):
            user = data.get("user")
            return user if isinstance(user, dict) else data
        return {}
