"""Punto de entrada de larga duración: run(settings, stop_event)."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from common.config import Settings

from .core.connection.backoff import BackoffConfig, ReconnectBackoff
from .core.connection.manager import ConnectionManager
from .core.delivery.loop import DeliveryLoop
from .core.domain.interfaces import IBrokerClient, IQueueStorage, ISensor
from .core.monitoring.stats import DeliveryStats
from .core.queue.durable_queue import DurableQueue
from .core.queue.storage import SQLiteQueueStorage
from .core.sensor.ds18b20 import DS18B20Sensor
from .core.sensor.sampler import Sampler
from .core.transport.mqtt_client import PahoBrokerClient

logger = logging.getLogger(__name__)


def build_connection(settings: Settings, broker: Optional[IBrokerClient] = None) -> ConnectionManager:
    broker = broker or PahoBrokerClient(keepalive=settings.keepalive, qos=settings.qos)
    backoff = ReconnectBackoff(
        BackoffConfig(
            base_delay=settings.reconnect_base_delay,
            max_delay=settings.reconnect_max_delay,
        )
    )
    return ConnectionManager(broker, backoff=backoff)


def run(
    settings: Settings,
    stop_event: threading.Event,
    sensor: Optional[ISensor] = None,
    broker: Optional[IBrokerClient] = None,
    storage: Optional[IQueueStorage] = None,
) -> DeliveryStats:
    """Construye los componentes, ejecuta el bucle y libera recursos.

    Los colaboradores se pueden inyectar (tests); por defecto DS18B20,
    paho-mqtt y SQLite según la configuración.

    Raises:
        StorageError: la cola persistente no está disponible (fatal)
    """
    sampler = Sampler(sensor or DS18B20Sensor(settings.w1_devices_dir))
    queue = DurableQueue(storage or SQLiteQueueStorage(settings.queue_db_file))
    connection = build_connection(settings, broker)

    loop = DeliveryLoop(sampler, queue, connection, settings, stop_event)
    try:
        return loop.run()
    finally:
        connection.teardown()
        queue.close()
        logger.info("[RUNNER] Resources released. %s", loop.stats.to_dict())
        logger.info("[RUNNER] Connection stats: %s", connection.get_stats())
