"""Domain layer - Modelos, errores y contratos de colaboradores."""

from .errors import (
    ConfigError,
    ConnectError,
    FormatError,
    PublishError,
    SensorError,
    SensorNotFoundError,
    SensorParseError,
    SensorReadError,
    StorageError,
    TelemetryError,
)
from .interfaces import IBrokerClient, IQueueStorage, ISensor
from .reading import MAX_PAYLOAD_BYTES, Payload, QueueEntry, Reading

__all__ = [
    "ConfigError",
    "ConnectError",
    "FormatError",
    "PublishError",
    "SensorError",
    "SensorNotFoundError",
    "SensorParseError",
    "SensorReadError",
    "StorageError",
    "TelemetryError",
    "IBrokerClient",
    "IQueueStorage",
    "ISensor",
    "MAX_PAYLOAD_BYTES",
    "Payload",
    "QueueEntry",
    "Reading",
]
