"""Serialización de lecturas a payload.

Función pura: mismas entradas → mismos bytes. Variantes seleccionables
por configuración (PAYLOAD_FORMAT):

- text:  "rpi#0001,2024-04-05 19:10:40,23.45"
- json:  documento clave/valor (ver schemas.JsonPacket)
- alink: post de propiedades para plataforma IoT (ver schemas.AlinkPropertyPost)
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Callable, Dict, Union

from pydantic import ValidationError

from ..domain.errors import FormatError
from ..domain.reading import MAX_PAYLOAD_BYTES, Payload, Reading
from .schemas import AlinkPropertyPost, JsonPacket

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class PayloadFormat(str, Enum):
    """Variantes de serialización (código de plataforma)."""
    TEXT = "text"
    JSON = "json"
    ALINK = "alink"


def parse_format(name: Union[str, PayloadFormat]) -> PayloadFormat:
    """Convierte el nombre de configuración a PayloadFormat.

    Raises:
        FormatError: variante desconocida
    """
    if isinstance(name, PayloadFormat):
        return name
    try:
        return PayloadFormat(str(name).strip().lower())
    except ValueError:
        valid = ", ".join(f.value for f in PayloadFormat)
        raise FormatError(f"Unknown payload format {name!r} (valid: {valid})") from None


def make_device_id(serial: int) -> str:
    """ID de dispositivo a partir del número de serie: rpi#0001."""
    return f"rpi#{serial:04d}"


def _render_text(reading: Reading, device_id: str) -> str:
    return f"{device_id},{reading.timestamp.strftime(TIME_FORMAT)},{reading.value:.2f}"


def _render_json(reading: Reading, device_id: str) -> str:
    packet = JsonPacket(
        devid=device_id,
        time=reading.timestamp.strftime(TIME_FORMAT),
        temperature=f"{reading.value:.2f}",
    )
    return packet.model_dump_json()


def _render_alink(reading: Reading, device_id: str) -> str:
    # id del mensaje derivado del instante de muestreo (ms)
    packet = AlinkPropertyPost(
        id=str(int(reading.timestamp.timestamp() * 1000)),
        params={"CurrentTemperature": round(reading.value, 2)},
    )
    return packet.model_dump_json()


_RENDERERS: Dict[PayloadFormat, Callable[[Reading, str], str]] = {
    PayloadFormat.TEXT: _render_text,
    PayloadFormat.JSON: _render_json,
    PayloadFormat.ALINK: _render_alink,
}


def format_reading(
    reading: Reading,
    device_id: str,
    variant: Union[str, PayloadFormat],
    max_size: int = MAX_PAYLOAD_BYTES,
) -> Payload:
    """Serializa una lectura.

    Args:
        reading: Lectura a serializar
        device_id: Identidad del dispositivo
        variant: Variante de formato (nombre o PayloadFormat)
        max_size: Tamaño máximo del payload en bytes

    Returns:
        Payload con los bytes UTF-8 renderizados

    Raises:
        FormatError: variante desconocida, entrada inválida o tamaño excedido
    """
    fmt = parse_format(variant)

    if max_size <= 0:
        raise FormatError(f"Invalid buffer bound: {max_size}")
    if not device_id:
        raise FormatError("Empty device id")
    if not math.isfinite(reading.value):
        raise FormatError(f"Value is not finite: {reading.value}")

    try:
        rendered = _RENDERERS[fmt](reading, device_id)
    except (ValidationError, ValueError) as e:
        raise FormatError(f"Render {fmt.value} failed: {e}") from e

    data = rendered.encode("utf-8")
    if len(data) > max_size:
        raise FormatError(
            f"Rendered payload is {len(data)} bytes, exceeds bound of {max_size}"
        )

    return Payload(data=data)
