from __future__ import annotations

from enum import Enum


class LockMode(Enum):
    """Select locking behavior for singleton production.

    Asynchronous callers are always collapsed onto one shared pending future.
    The lock mode only decides whether synchronous production is also guarded
    against concurrent threads.
    """

    THREAD = "thread"
    """Guard singleton production with a per-registration ``threading.RLock``."""

    NONE = "none"
    """Disable locking; use when the container is confined to one thread."""
