"""Driver DS18B20 sobre el bus 1-Wire de Linux (sysfs).

Requiere en /boot/config.txt:
    dtoverlay=w1-gpio-pullup,gpiopin=4

Contenido de w1_slave:
    3a 01 4b 46 7f ff 0c 10 a5 : crc=a5 YES
    3a 01 4b 46 7f ff 0c 10 a5 t=19625
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..domain.errors import SensorNotFoundError, SensorParseError, SensorReadError
from ..domain.interfaces import ISensor

logger = logging.getLogger(__name__)

W1_DEVICES_DIR = "/sys/bus/w1/devices"
CHIP_PREFIX = "28-"


class DS18B20Sensor(ISensor):
    """Sensor de temperatura DS18B20.

    El chip se busca en cada lectura: si se desconecta y reconecta
    el daemon lo vuelve a encontrar sin reiniciar.
    """

    def __init__(self, devices_dir: str = W1_DEVICES_DIR):
        self._devices_dir = Path(devices_dir)

    def find_chip(self) -> Path:
        """Devuelve el directorio del primer chip 28-xxxx."""
        try:
            entries = sorted(self._devices_dir.iterdir())
        except OSError as e:
            raise SensorNotFoundError(f"cannot list {self._devices_dir}: {e}") from e

        for entry in entries:
            if entry.name.startswith(CHIP_PREFIX):
                return entry

        raise SensorNotFoundError(f"no DS18B20 found in {self._devices_dir}")

    def read_value(self) -> float:
        slave = self.find_chip() / "w1_slave"
        try:
            content = slave.read_text()
        except OSError as e:
            raise SensorReadError(f"read {slave} failed: {e}") from e

        return parse_w1_slave(content)


def parse_w1_slave(content: str) -> float:
    """Extrae la temperatura (°C) del contenido de w1_slave."""
    lines = content.strip().splitlines()
    if not lines:
        raise SensorParseError("empty w1_slave content")

    crc_ok: Optional[bool] = None
    if "crc=" in lines[0]:
        crc_ok = lines[0].rstrip().endswith("YES")
    if crc_ok is False:
        raise SensorReadError("CRC check failed")

    pos = content.find("t=")
    if pos < 0:
        raise SensorParseError("temperature field 't=' not found")

    tokens = content[pos + 2:].split()
    raw = tokens[0] if tokens else ""
    try:
        millidegrees = int(raw)
    except ValueError:
        raise SensorParseError(f"invalid temperature value: {raw!r}") from None

    return millidegrees / 1000.0
