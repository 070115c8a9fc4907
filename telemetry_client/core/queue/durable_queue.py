"""Cola FIFO persistente de payloads pendientes de entrega.

GARANTÍAS:
- FIFO estricto: nunca se reordena, fusiona ni deduplica
- At-least-once: peek y delete son dos llamadas separadas; un crash
  entre ambas provoca re-entrega, nunca pérdida
- push es duradero al retornar
- Todas las operaciones funcionan sobre un almacenamiento vacío (primer arranque)
"""

from __future__ import annotations

import logging
from typing import Optional

from ..domain.interfaces import IQueueStorage
from ..domain.reading import Payload
from ..monitoring.metrics import QUEUE_DEPTH, QUEUE_OPS

logger = logging.getLogger(__name__)


class DurableQueue:
    """Cola de store-and-forward sobre un IQueueStorage.

    Uso:
        queue = DurableQueue(SQLiteQueueStorage(path))
        queue.push(payload)
        head = queue.peek_oldest()
        if head is not None and publish(head):
            queue.delete_oldest()

    Todos los métodos pueden lanzar StorageError (fatal para el llamador).
    """

    def __init__(self, storage: IQueueStorage):
        self._storage = storage
        self._peeked_id: Optional[int] = None
        QUEUE_DEPTH.set(self._storage.count())

    def push(self, payload: Payload) -> None:
        """Añade al final de la cola."""
        self._storage.append(payload.data)
        QUEUE_OPS.labels(op="push").inc()
        QUEUE_DEPTH.inc()
        logger.info("[QUEUE] Pushed payload (%d bytes)", payload.size)

    def peek_oldest(self) -> Optional[Payload]:
        """Devuelve el más antiguo sin borrarlo; None si está vacía.

        Idempotente hasta que se llame a delete_oldest().
        """
        entry = self._storage.read_oldest()
        if entry is None:
            self._peeked_id = None
            return None
        self._peeked_id = entry.entry_id
        return entry.payload

    def delete_oldest(self) -> None:
        """Borra exactamente la entrada devuelta por el último peek.

        Sin un peek vigente es un no-op: nunca se borra una entrada que
        peek_oldest() no haya devuelto antes.
        """
        if self._peeked_id is None:
            logger.debug("[QUEUE] delete_oldest without a live peek, ignored")
            return

        self._storage.delete(self._peeked_id)
        logger.debug("[QUEUE] Deleted entry id=%d", self._peeked_id)
        self._peeked_id = None
        QUEUE_OPS.labels(op="delete").inc()
        QUEUE_DEPTH.set(self._storage.count())

    def __len__(self) -> int:
        return self._storage.count()

    def close(self) -> None:
        self._storage.close()
