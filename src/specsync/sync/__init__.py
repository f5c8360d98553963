"""Reconciliation of local documents with the documentation platform.

Sub-modules:

* :mod:`~specsync.sync.engine` -- :class:`Reconciler`, the orchestrator.
* :mod:`~specsync.sync.poller` -- fixed-interval task polling.
* :mod:`~specsync.sync.extraction` -- collection-uid extraction strategies.
* :mod:`~specsync.sync.environments` -- environment upsert saga.
"""

from specsync.sync.engine import Reconciler
from specsync.sync.environments import EnvironmentUpserter, UpsertOutcome
from specsync.sync.extraction import EXTRACTION_STRATEGIES, extract_collection_uid
from specsync.sync.poller import TaskPoller, is_success, is_terminal

__all__ = [
    "EXTRACTION_STRATEGIES",
    "EnvironmentUpserter",
    "Reconciler",
    "TaskPoller",
    "UpsertOutcome",
    "extract_collection_uid",
    "is_success",
    "is_terminal",
]
