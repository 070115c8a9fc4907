"""Modelos de dominio: lectura y payload serializado."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

MAX_PAYLOAD_BYTES = 1024


@dataclass(frozen=True)
class Reading:
    """Lectura de sensor.

    Se crea en cada muestreo y se descarta tras formatearse.
    `timestamp` es hora de pared (local), no monotónica.
    """
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class Payload:
    """Bytes listos para publicar o encolar."""
    data: bytes

    def __len__(self) -> int:
        return len(self.data)

    @property
    def size(self) -> int:
        return len(self.data)

    def preview(self, limit: int = 80) -> str:
        """Texto truncado para logs."""
        return self.data[:limit].decode("utf-8", errors="replace")


@dataclass(frozen=True)
class QueueEntry:
    """Payload almacenado; `entry_id` crece con el orden de inserción."""
    entry_id: int
    payload: Payload
