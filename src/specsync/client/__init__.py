"""HTTP client module for specsync.

:class:`HttpClient` wraps :mod:`httpx` with API-key injection and error
mapping; :class:`PlatformAPI` exposes one method per documentation-platform
endpoint on top of it.

Example::

    from specsync.client import HttpClient, PlatformAPI

    with HttpClient(settings) as http:
        api = PlatformAPI(http, settings.workspace_id)
        spec = api.find_spec_by_name("[DEMO] orders #main")
"""

from specsync.client.http import HttpClient
from specsync.client.platform import GENERATION_OPTIONS, PlatformAPI, TaskHandle

__all__ = ["GENERATION_OPTIONS", "HttpClient", "PlatformAPI", "TaskHandle"]
