"""Muestreo: una lectura del sensor → Reading con hora de pared."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..domain.interfaces import ISensor
from ..domain.reading import Reading

logger = logging.getLogger(__name__)


class Sampler:
    """Obtiene una Reading bajo demanda.

    Sin efectos laterales además de la lectura; los SensorError se
    propagan al llamador, que decide saltarse el tick.
    """

    def __init__(self, sensor: ISensor, clock: Callable[[], datetime] = datetime.now):
        self._sensor = sensor
        self._clock = clock

    def sample(self) -> Reading:
        value = self._sensor.read_value()
        reading = Reading(timestamp=self._clock(), value=float(value))
        logger.debug("[SENSOR] Sampled value=%.3f ts=%s", reading.value, reading.timestamp)
        return reading
