"""Queue layer - Cola persistente de store-and-forward."""

from .durable_queue import DurableQueue
from .storage import SQLiteQueueStorage

__all__ = ["DurableQueue", "SQLiteQueueStorage"]
