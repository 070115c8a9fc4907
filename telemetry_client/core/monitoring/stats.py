"""Estadísticas del bucle de entrega."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class DeliveryStats:
    """Contadores de procesamiento del bucle de entrega."""

    iterations: int = 0
    sampled: int = 0
    sensor_errors: int = 0
    format_errors: int = 0
    published: int = 0
    queued: int = 0
    drained: int = 0
    connect_failures: int = 0
    publish_failures: int = 0
    started_at: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return (
            f"Stats: sampled={self.sampled} published={self.published} "
            f"queued={self.queued} drained={self.drained}"
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        return {
            "iterations": self.iterations,
            "sampled": self.sampled,
            "sensor_errors": self.sensor_errors,
            "format_errors": self.format_errors,
            "published": self.published,
            "queued": self.queued,
            "drained": self.drained,
            "connect_failures": self.connect_failures,
            "publish_failures": self.publish_failures,
            "started_at": self.started_at.isoformat(),
            "delivery_rate": self._delivery_rate(),
        }

    def _delivery_rate(self) -> float:
        """Fracción de lecturas publicadas en vivo (sin pasar por la cola)."""
        total = self.published + self.queued
        if total == 0:
            return 1.0
        return self.published / total
