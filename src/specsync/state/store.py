"""JSON state file mapping identity keys to cached remote identifiers.

The state file makes repeated runs cheap: a cached ``specId`` or
``collectionUid`` skips the corresponding lookup. It is advisory only --
a lost or corrupt file costs extra name lookups, never correctness -- so
:func:`load_state` never raises.

File shape::

    {
      "entries": {
        "demo:orders:prod": {
          "specId": "...",
          "collectionUid": "...",
          "lastSpecSha": "...",
          "environments": {"prod-us": "..."}
        }
      },
      "meta": {"description": "...", "version": 1, "updatedAt": "..."}
    }

There is no locking: two runs against the same file at once can clobber
each other's writes, so pipelines must serialise them.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from specsync.config import atomic_write
from specsync.models import StateDocument, StateEntry
from specsync.naming import identity_key
from specsync.output import debug, warning

STATE_VERSION = 1
STATE_DESCRIPTION = "Documentation platform asset identifiers per domain:service:stage"

__all__ = ["StateStore", "identity_key", "load_state", "save_state"]


def load_state(path: str | Path) -> StateDocument:
    """Load the state document from *path*.

    Returns:
        The parsed document, or an empty one if the file is absent or
        cannot be parsed.
    """
    path = Path(path)
    if not path.is_file():
        debug(f"No state file at {path}, starting with empty state")
        return StateDocument()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return StateDocument.model_validate(data)
    except (json.JSONDecodeError, OSError, ValidationError) as exc:
        warning(f"State file {path} is unreadable, starting with empty state: {exc}")
        return StateDocument()


def save_state(path: str | Path, document: StateDocument) -> None:
    """Stamp ``meta`` and write *document* to *path* atomically."""
    document.meta.update(
        {
            "description": STATE_DESCRIPTION,
            "version": STATE_VERSION,
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }
    )
    data = document.model_dump(mode="json", by_alias=True, exclude_none=True)
    atomic_write(Path(path), json.dumps(data, indent=2) + "\n")


class StateStore:
    """A state document bound to the file it was loaded from.

    Args:
        path: Location of the state file. Nothing is read until
            :meth:`load` is called.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.document = StateDocument()

    def load(self) -> StateDocument:
        """Read the file into :attr:`document` and return it."""
        self.document = load_state(self.path)
        return self.document

    def entry(self, key: str) -> StateEntry:
        """Return the entry for *key*, creating an empty one on first reference."""
        entry = self.document.entries.get(key)
        if entry is None:
            entry = StateEntry()
            self.document.entries[key] = entry
        return entry

    def save(self) -> None:
        """Persist the whole document."""
        save_state(self.path, self.document)
        debug(f"Saved state to {self.path}")
