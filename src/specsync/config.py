"""Settings resolution, atomic writes, and the environment-config loader.

This module handles everything specsync reads from or writes to the local
machine apart from the OpenAPI document itself:

* **Settings** -- :func:`resolve_settings` merges CLI flags, environment
  variables and the project-local ``specsync.json`` into a
  :class:`~specsync.models.SyncSettings`. The engine receives that object
  explicitly; nothing reads credentials from globals.
* **Environment config** -- :func:`load_environment_config` reads the
  optional multi-environment file. A missing or invalid file means "no
  enrichment" rather than an error.
* **Atomic writes** -- :func:`atomic_write` is used for the state file so
  that a crash mid-write never leaves truncated JSON behind.
* **Data directory** -- :func:`get_data_dir` is where crash logs go.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specsync.exceptions import ConfigError
from specsync.models import DEFAULT_BASE_URL, EnvironmentConfig, PollConfig, RequestConfig, SyncSettings
from specsync.output import debug, warning

_APP_NAME = "specsync"
_PROJECT_CONFIG_FILENAME = "specsync.json"

ENV_API_KEY = "POSTMAN_API_KEY"
ENV_WORKSPACE_ID = "POSTMAN_WORKSPACE_ID"
ENV_BASE_URL = "SPECSYNC_BASE_URL"

DEFAULT_STATE_FILE = "state/postman-ingestion-state.json"
DEFAULT_ENVIRONMENTS_FILE = "config/environments.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specsync/`` (default
    ``~/.local/share/specsync/``). Elsewhere: ``~/.specsync/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    Parent directories are created as needed. The temporary file lives in
    the target directory so that ``os.replace`` is an atomic rename on
    POSIX systems; it is removed again on any failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load ``specsync.json`` from *directory* (default: the working directory).

    The file may set ``workspace_id``, ``base_url``, ``request`` and
    ``poll``. API keys do not belong there and are ignored if present.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    data.pop("api_key", None)
    return data


# --- Precedence resolution ---


def resolve_settings(
    cli_api_key: Optional[str] = None,
    cli_workspace_id: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    project_dir: Optional[Path] = None,
) -> SyncSettings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``POSTMAN_API_KEY``,
           ``POSTMAN_WORKSPACE_ID``, ``SPECSYNC_BASE_URL``)
        3. Project config (``./specsync.json``)
        4. Defaults

    Raises:
        ConfigError: If no API key or workspace id can be resolved, or the
            project config fails validation.
    """
    project = load_project_config(project_dir) or {}

    api_key = cli_api_key or os.environ.get(ENV_API_KEY)
    workspace_id = (
        cli_workspace_id
        or os.environ.get(ENV_WORKSPACE_ID)
        or project.get("workspace_id")
    )
    base_url = (
        cli_base_url
        or os.environ.get(ENV_BASE_URL)
        or project.get("base_url")
        or DEFAULT_BASE_URL
    )

    if not api_key:
        raise ConfigError(f"Missing required API key: set {ENV_API_KEY} or pass --api-key")
    if not workspace_id:
        raise ConfigError(
            f"Missing required workspace id: set {ENV_WORKSPACE_ID} or pass --workspace-id"
        )

    try:
        return SyncSettings(
            api_key=api_key,
            workspace_id=workspace_id,
            base_url=base_url.rstrip("/"),
            request=RequestConfig.model_validate(project.get("request", {})),
            poll=PollConfig.model_validate(project.get("poll", {})),
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


# --- Environment config ---


def load_environment_config(path: str | Path = DEFAULT_ENVIRONMENTS_FILE) -> Optional[EnvironmentConfig]:
    """Load the multi-environment configuration file.

    Returns:
        The parsed :class:`~specsync.models.EnvironmentConfig`, or ``None``
        when the file is missing (logged) or cannot be parsed (warned).
    """
    path = Path(path)
    if not path.is_file():
        debug(f"No environment config found at {path}, skipping multi-environment setup")
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return EnvironmentConfig.model_validate(data)
    except (json.JSONDecodeError, OSError, ValidationError) as exc:
        warning(f"Failed to load environment config {path}: {exc}")
        return None
