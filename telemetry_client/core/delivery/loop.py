"""Bucle de entrega store-and-forward.

Flujo por tick:
  1. Puerta de muestreo (reloj monotónico): ¿ha pasado el intervalo?
  2. Sampler → Formatter → Payload fresco
  3. Conexión: si no hay sesión (y el backoff lo permite) se reconecta
  4. Payload fresco: publish en vivo o, si no se puede, push a la cola
  5. Drenado: como mucho UNA entrada de la cola por tick (peek → publish → delete)
  6. Sleep del tick fijo y vuelta a comprobar la señal de parada

GARANTÍAS:
- Ninguna lectura válida se pierde por fallo de red o broker
- La cola se entrega en orden FIFO
- Una entrada sólo se borra tras un publish confirmado (at-least-once)
- StorageError es fatal: se propaga y el bucle se detiene
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from common.config import Settings

from ..connection.manager import ConnectionManager
from ..domain.errors import ConnectError, FormatError, PublishError, SensorError, StorageError
from ..domain.reading import Payload
from ..monitoring.metrics import PUBLISHES, SAMPLES
from ..monitoring.stats import DeliveryStats
from ..packet.formatter import format_reading
from ..queue.durable_queue import DurableQueue
from ..sensor.sampler import Sampler

logger = logging.getLogger(__name__)


class DeliveryLoop:
    """Driver de nivel superior: muestreo, publicación y drenado de cola.

    Acceso estrictamente secuencial a Sampler, DurableQueue y
    ConnectionManager; la única frontera concurrente es `stop_event`.

    Uso:
        loop = DeliveryLoop(sampler, queue, connection, settings, stop_event)
        stats = loop.run()
    """

    def __init__(
        self,
        sampler: Sampler,
        queue: DurableQueue,
        connection: ConnectionManager,
        settings: Settings,
        stop_event: threading.Event,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], object]] = None,
    ):
        self._sampler = sampler
        self._queue = queue
        self._connection = connection
        self._settings = settings
        self._stop = stop_event
        self._monotonic = monotonic
        # stop_event.wait: una parada durante el sleep se ve sin esperar el tick entero
        self._sleep = sleep or stop_event.wait

        self._last_sample_at: Optional[float] = None
        self._stats = DeliveryStats()

    @property
    def stats(self) -> DeliveryStats:
        return self._stats

    def run(self) -> DeliveryStats:
        """Ejecuta ticks hasta que se activa la señal de parada.

        Raises:
            StorageError: la cola persistente falló (fatal)
        """
        logger.info(
            "[DELIVERY] Loop started: interval=%.1fs tick=%.2fs topic=%s format=%s",
            self._settings.sample_interval,
            self._settings.tick_seconds,
            self._settings.topic,
            self._settings.payload_format,
        )

        while not self._stop.is_set():
            try:
                self.run_iteration()
            except StorageError as e:
                logger.critical("[DELIVERY] Storage failure, stopping loop: %s", e)
                raise
            self._sleep(self._settings.tick_seconds)

        logger.info("[DELIVERY] Loop stopped. %s", self._stats)
        return self._stats

    def run_iteration(self) -> None:
        """Un tick completo (sin el sleep)."""
        self._stats.iterations += 1

        payload = self._sample_if_due()
        connected = self._ensure_connected()

        if payload is not None:
            self._deliver_fresh(payload, connected)

        self._drain_one()

    def _sample_due(self, now: float) -> bool:
        if self._last_sample_at is None:
            return True
        return now >= self._last_sample_at + self._settings.sample_interval

    def _sample_if_due(self) -> Optional[Payload]:
        now = self._monotonic()
        if not self._sample_due(now):
            return None

        # La puerta avanza también si la lectura falla: un sensor roto
        # se reintenta una vez por intervalo, no en cada tick.
        self._last_sample_at = now

        try:
            reading = self._sampler.sample()
        except SensorError as e:
            self._stats.sensor_errors += 1
            SAMPLES.labels(status="sensor_error").inc()
            logger.warning("[DELIVERY] Sample skipped (%s): %s", type(e).__name__, e)
            return None

        try:
            payload = format_reading(
                reading,
                self._settings.device_id,
                self._settings.payload_format,
                self._settings.payload_max_bytes,
            )
        except FormatError as e:
            self._stats.format_errors += 1
            SAMPLES.labels(status="format_error").inc()
            logger.error("[DELIVERY] Reading dropped, format failed: %s", e)
            return None

        self._stats.sampled += 1
        SAMPLES.labels(status="ok").inc()
        logger.info("[DELIVERY] Sampled: %s", payload.preview())
        return payload

    def _ensure_connected(self) -> bool:
        if self._connection.is_connected():
            return True
        if not self._connection.reconnect_due():
            return False

        try:
            self._connection.connect(self._settings)
            return True
        except ConnectError as e:
            self._stats.connect_failures += 1
            logger.warning("[DELIVERY] Connect failed: %s", e)
            return False

    def _deliver_fresh(self, payload: Payload, connected: bool) -> None:
        if connected:
            try:
                self._connection.publish(self._settings.topic, payload)
                self._stats.published += 1
                PUBLISHES.labels(source="fresh", status="ok").inc()
                logger.info("[DELIVERY] Published fresh sample to %s", self._settings.topic)
                return
            except PublishError as e:
                self._stats.publish_failures += 1
                PUBLISHES.labels(source="fresh", status="failed").inc()
                logger.warning("[DELIVERY] Publish failed, queueing sample: %s", e)

        self._queue.push(payload)
        self._stats.queued += 1
        logger.info("[DELIVERY] Sample stored for later delivery (pending=%d)", len(self._queue))

    def _drain_one(self) -> None:
        if not self._connection.is_connected():
            return

        head = self._queue.peek_oldest()
        if head is None:
            return

        try:
            self._connection.publish(self._settings.topic, head)
        except PublishError as e:
            self._stats.publish_failures += 1
            PUBLISHES.labels(source="queue", status="failed").inc()
            logger.warning("[DELIVERY] Drain publish failed, entry kept: %s", e)
            return

        PUBLISHES.labels(source="queue", status="ok").inc()
        self._queue.delete_oldest()
        self._stats.drained += 1
        logger.info("[DELIVERY] Drained queued payload (pending=%d)", len(self._queue))
