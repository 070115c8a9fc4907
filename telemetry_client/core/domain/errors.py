"""Taxonomía de errores del cliente de telemetría.

- SensorError: se salta la muestra actual, sin más pérdida.
- FormatError: se descarta la lectura (no reintentable).
- ConnectError / PublishError: el mensaje va a la cola persistente.
- StorageError: fatal, el bucle se detiene (no se puede garantizar entrega).
- ConfigError: aborta el arranque; vive en common.config.
"""

from __future__ import annotations

# Definido en common (paquete hoja); se re-exporta para el resto del núcleo.
from common.config import ConfigError


class TelemetryError(Exception):
    """Base de todos los errores del cliente."""


class SensorError(TelemetryError):
    """Fallo al leer el sensor."""


class SensorNotFoundError(SensorError):
    """No se encontró el sensor (hardware ausente)."""


class SensorReadError(SensorError):
    """Error de E/S leyendo el sensor."""


class SensorParseError(SensorError):
    """El sensor devolvió datos no interpretables."""


class FormatError(TelemetryError):
    """No se pudo serializar la lectura."""


class ConnectError(TelemetryError):
    """No se pudo abrir sesión con el broker."""


class PublishError(TelemetryError):
    """Fallo al publicar en el broker."""


class StorageError(TelemetryError):
    """Fallo de la cola persistente."""
