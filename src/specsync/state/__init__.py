"""Local persistence of remote identifiers.

Provides :class:`StateStore` plus the :func:`load_state` and
:func:`save_state` functions it is built on. The store is consumed by
:class:`~specsync.sync.engine.Reconciler`, which receives a mutable
:class:`~specsync.models.StateEntry` for the duration of a run.
"""

from specsync.state.store import StateStore, identity_key, load_state, save_state

__all__ = ["StateStore", "identity_key", "load_state", "save_state"]
