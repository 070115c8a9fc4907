"""Packet layer - Serialización de lecturas."""

from .formatter import PayloadFormat, format_reading, make_device_id, parse_format

__all__ = ["PayloadFormat", "format_reading", "make_device_id", "parse_format"]
