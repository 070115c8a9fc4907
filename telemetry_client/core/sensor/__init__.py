"""Sensor layer - Driver DS18B20 y muestreo."""

from .ds18b20 import DS18B20Sensor, parse_w1_slave
from .sampler import Sampler

__all__ = ["DS18B20Sensor", "parse_w1_slave", "Sampler"]
