"""Tests del formatter de payloads.

Ejecutar:
    pytest tests/test_formatter.py -v
"""

import json
from datetime import datetime

import pytest

from telemetry_client.core.domain.errors import FormatError
from telemetry_client.core.domain.reading import Payload, Reading
from telemetry_client.core.packet.formatter import (
    PayloadFormat,
    format_reading,
    make_device_id,
    parse_format,
)


@pytest.fixture
def reading(fixed_time) -> Reading:
    return Reading(timestamp=fixed_time, value=23.45)


# =============================================================================
# VARIANTES
# =============================================================================

class TestVariants:
    """Cada variante produce el formato esperado."""

    def test_text_variant(self, reading):
        payload = format_reading(reading, "rpi#0001", "text")

        assert isinstance(payload, Payload)
        assert payload.data == b"rpi#0001,2024-04-05 19:10:40,23.45"
        assert len(payload) == len(payload.data)

    def test_json_variant(self, reading):
        payload = format_reading(reading, "rpi#0001", PayloadFormat.JSON)

        doc = json.loads(payload.data)
        assert doc == {
            "devid": "rpi#0001",
            "time": "2024-04-05 19:10:40",
            "temperature": "23.45",
        }
        assert list(doc) == ["devid", "time", "temperature"]

    def test_alink_variant(self, reading, fixed_time):
        payload = format_reading(reading, "rpi#0001", "alink")

        doc = json.loads(payload.data)
        assert doc["method"] == "thing.event.property.post"
        assert doc["version"] == "1.0"
        assert doc["params"] == {"CurrentTemperature": 23.45}
        assert doc["id"] == str(int(fixed_time.timestamp() * 1000))

    def test_negative_value_two_decimals(self, fixed_time):
        payload = format_reading(Reading(fixed_time, -5.0), "rpi#0002", "text")
        assert payload.data == b"rpi#0002,2024-04-05 19:10:40,-5.00"

    @pytest.mark.parametrize("variant", list(PayloadFormat))
    def test_deterministic(self, reading, variant):
        """Mismas entradas = mismos bytes."""
        first = format_reading(reading, "rpi#0001", variant)
        second = format_reading(Reading(reading.timestamp, reading.value), "rpi#0001", variant)
        assert first == second


# =============================================================================
# ERRORES
# =============================================================================

class TestFormatErrors:
    """Entradas inválidas producen FormatError."""

    def test_bound_smaller_than_rendered(self, reading):
        rendered = format_reading(reading, "rpi#0001", "text")

        with pytest.raises(FormatError, match="exceeds"):
            format_reading(reading, "rpi#0001", "text", max_size=len(rendered) - 1)

    def test_bound_equal_to_rendered_is_ok(self, reading):
        rendered = format_reading(reading, "rpi#0001", "json")
        again = format_reading(reading, "rpi#0001", "json", max_size=len(rendered))
        assert again == rendered

    def test_non_positive_bound(self, reading):
        with pytest.raises(FormatError):
            format_reading(reading, "rpi#0001", "text", max_size=0)

    def test_unknown_variant(self, reading):
        with pytest.raises(FormatError, match="Unknown payload format"):
            format_reading(reading, "rpi#0001", "xml")

    def test_empty_device_id(self, reading):
        with pytest.raises(FormatError):
            format_reading(reading, "", "json")

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_value(self, fixed_time, value):
        with pytest.raises(FormatError, match="not finite"):
            format_reading(Reading(fixed_time, value), "rpi#0001", "alink")


# =============================================================================
# HELPERS
# =============================================================================

class TestHelpers:

    def test_parse_format_case_insensitive(self):
        assert parse_format(" JSON ") is PayloadFormat.JSON
        assert parse_format(PayloadFormat.TEXT) is PayloadFormat.TEXT

    def test_make_device_id(self):
        assert make_device_id(1) == "rpi#0001"
        assert make_device_id(42) == "rpi#0042"
