"""Synchronous HTTP client for the documentation platform.

This module provides :class:`HttpClient`, a thin layer over
:class:`httpx.Client` that:

- **injects the API key** -- every request carries the ``x-api-key``
  header from :class:`~specsync.models.SyncSettings`;
- **accepts asynchronous starts** -- any 2xx, including ``202 Accepted``,
  is a success;
- **maps failures** -- non-2xx responses raise a typed
  :class:`~specsync.exceptions.RemoteCallError` whose message carries the
  method, path, status and response body; transport failures raise
  :class:`~specsync.exceptions.ConnectionError_`.

There is deliberately no retry loop: every call is issued once and a
failure ends the run. Re-running is safe because resolution falls back to
name lookups.

See Also:
    :class:`~specsync.client.platform.PlatformAPI` for the typed endpoint
    wrappers built on top of this client.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from specsync.exceptions import (
    AuthError,
    ConnectionError_,
    NotFoundError,
    RemoteCallError,
    ServerError,
)
from specsync.models import SyncSettings
from specsync.output import debug


class HttpClient:
    """Blocking client for platform calls.

    Must be used as a context manager so that the underlying transport is
    opened and closed exactly once per run.

    Args:
        settings: Resolved settings holding the base URL, API key and
            transport options.
        transport: Optional httpx transport, used by tests to plug in
            :class:`httpx.MockTransport`.

    Example::

        with HttpClient(settings) as client:
            response = client.get("/specs", params={"workspaceId": ws})
    """

    def __init__(
        self,
        settings: SyncSettings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpClient:
        config = self._settings.request
        self._client = httpx.Client(
            base_url=self._settings.base_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send one request and map error statuses to exceptions.

        Args:
            method: HTTP method.
            path: Path relative to the base URL, or an absolute URL (task
                locators are sometimes returned absolute).
            params: Query parameters.
            json_body: JSON-serialisable body; sets the content type.

        Returns:
            The 2xx :class:`httpx.Response`.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On any other non-2xx status.
            ConnectionError_: On network or timeout errors.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        headers = {
            "x-api-key": self._settings.api_key,
            "Accept": "application/json",
        }
        kwargs: dict[str, Any] = {"headers": headers}
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body

        display = f"{path}?{urlencode(params)}" if params else path
        debug(f"{method.upper()} {display}")
        try:
            response = self._client.request(method.upper(), path, **kwargs)
        except httpx.TimeoutException as exc:
            raise ConnectionError_(f"Platform API {method.upper()} {display} timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise ConnectionError_(f"Platform API {method.upper()} {display} failed: {exc}") from exc

        self._map_response_error(method.upper(), display, response)
        return response

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a POST request."""
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a PUT request."""
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a PATCH request."""
        return self.request("PATCH", path, **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _map_response_error(method: str, path: str, response: httpx.Response) -> None:
        """Raise a typed exception for any non-2xx status."""
        status = response.status_code
        if 200 <= status < 300:
            return

        body = response.text
        message = (
            f"Platform API {method} {path} failed: {status} "
            f"{response.reason_phrase or ''}".rstrip()
        )
        if body:
            message += f"\n{body}"

        exc_type: type[RemoteCallError]
        if status in (401, 403):
            exc_type = AuthError
        elif status == 404:
            exc_type = NotFoundError
        else:
            exc_type = ServerError
        raise exc_type(message, method=method, path=path, status_code=status, body=body)
