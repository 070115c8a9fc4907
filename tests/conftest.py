"""Fixtures compartidas por los tests."""

from __future__ import annotations

import threading
from datetime import datetime

import pytest

from common.config import Settings
from fakes import make_settings

ENV_KEYS = [
    "MQTT_BROKER_HOST", "MQTT_BROKER_PORT", "MQTT_CLIENT_ID", "MQTT_USERNAME",
    "MQTT_PASSWORD", "MQTT_TOPIC", "MQTT_QOS", "MQTT_KEEPALIVE",
    "SAMPLE_INTERVAL", "TICK_SECONDS", "DEVICE_ID", "PAYLOAD_FORMAT",
    "PAYLOAD_MAX_BYTES", "QUEUE_DB_FILE", "W1_DEVICES_DIR",
    "RECONNECT_BASE_DELAY", "RECONNECT_MAX_DELAY", "LOG_FILE", "LOG_LEVEL",
    "LOG_MAX_KB", "PID_FILE", "METRICS_PORT", "TELEMETRY_ENV_FILE",
]


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def stop_event() -> threading.Event:
    return threading.Event()


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2024, 4, 5, 19, 10, 40)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Entorno sin variables del cliente.

    setenv + delenv registra cada clave en monkeypatch, así lo que cargue
    load_dotenv durante el test también se deshace al terminar.
    """
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.setenv("TELEMETRY_ENV_FILE", str(tmp_path / "missing.env"))
    return monkeypatch
