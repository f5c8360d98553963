"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specsync.exceptions.SpecsyncError` subclass.
CI pipelines can branch on the exit code of ``specsync sync`` without
parsing stderr.

Example::

    $ specsync sync --service orders --stage prod --openapi openapi.json
    $ echo $?
    8   # EXIT_TASK_FAILED -- the collection task ended in a failed state
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unusable input document."""

EXIT_AUTH_FAILURE = 3
"""The documentation platform rejected the API key (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""A remote resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The platform returned a 5xx or an unexpected 4xx status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be read or parsed."""

EXIT_TASK_FAILED = 8
"""An asynchronous generation or synchronization task did not succeed."""

EXIT_RESOLUTION_FAILED = 9
"""A remote identifier could not be resolved through any fallback."""
