from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Variantes de PAYLOAD_FORMAT aceptadas (deben coincidir con PayloadFormat)
PAYLOAD_FORMATS = ("text", "json", "alink")


class ConfigError(ValueError):
    """Configuración inválida."""


def _default_env_file() -> str:
    # .env junto al directorio de trabajo del daemon (igual que ./data y ./log).
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    broker_host: str
    broker_port: int
    client_id: str
    username: Optional[str]
    password: Optional[str]
    topic: str
    qos: int
    keepalive: int

    sample_interval: float
    tick_seconds: float
    device_id: str
    payload_format: str
    payload_max_bytes: int

    queue_db_file: str
    w1_devices_dir: str

    reconnect_base_delay: float
    reconnect_max_delay: float

    log_file: str
    log_level: str
    log_max_kb: int
    pid_file: str
    metrics_port: int


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def validate_settings(settings: Settings) -> Settings:
    """Valida rangos; lanza ConfigError con el primer problema encontrado."""
    if not settings.broker_host:
        raise ConfigError("MQTT_BROKER_HOST is required")
    if not 0 < settings.broker_port < 65536:
        raise ConfigError(f"MQTT_BROKER_PORT out of range: {settings.broker_port}")
    if settings.qos not in (0, 1, 2):
        raise ConfigError(f"MQTT_QOS must be 0, 1 or 2, got {settings.qos}")
    if settings.sample_interval <= 0:
        raise ConfigError(f"SAMPLE_INTERVAL must be > 0, got {settings.sample_interval}")
    if settings.tick_seconds <= 0:
        raise ConfigError(f"TICK_SECONDS must be > 0, got {settings.tick_seconds}")
    if settings.payload_max_bytes <= 0:
        raise ConfigError(f"PAYLOAD_MAX_BYTES must be > 0, got {settings.payload_max_bytes}")
    if not settings.device_id:
        raise ConfigError("DEVICE_ID must not be empty")
    if settings.reconnect_base_delay < 0 or settings.reconnect_max_delay < 0:
        raise ConfigError("RECONNECT_* delays must be >= 0")

    if settings.payload_format.strip().lower() not in PAYLOAD_FORMATS:
        raise ConfigError(
            f"Unknown payload format {settings.payload_format!r} "
            f"(valid: {', '.join(PAYLOAD_FORMATS)})"
        )

    return settings


def get_settings(env_file: Optional[str] = None, **overrides) -> Settings:
    """Carga la configuración una sola vez al arrancar.

    Orden de precedencia: overrides (CLI) > variables de entorno reales > .env.

    Raises:
        ConfigError: si algún valor no es válido
    """
    env_file = env_file or os.getenv("TELEMETRY_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    settings = Settings(
        broker_host=os.getenv("MQTT_BROKER_HOST", ""),
        broker_port=_env_int("MQTT_BROKER_PORT", "1883"),
        client_id=os.getenv("MQTT_CLIENT_ID", "telemetry-client"),
        username=os.getenv("MQTT_USERNAME") or None,
        password=os.getenv("MQTT_PASSWORD") or None,
        topic=os.getenv("MQTT_TOPIC", "telemetry/temperature"),
        qos=_env_int("MQTT_QOS", "1"),
        keepalive=_env_int("MQTT_KEEPALIVE", "60"),
        sample_interval=_env_float("SAMPLE_INTERVAL", "60"),
        tick_seconds=_env_float("TICK_SECONDS", "1.0"),
        device_id=os.getenv("DEVICE_ID", "rpi#0001"),
        payload_format=os.getenv("PAYLOAD_FORMAT", "json"),
        payload_max_bytes=_env_int("PAYLOAD_MAX_BYTES", "1024"),
        queue_db_file=os.getenv("QUEUE_DB_FILE", "./data/client_data.db"),
        w1_devices_dir=os.getenv("W1_DEVICES_DIR", "/sys/bus/w1/devices"),
        reconnect_base_delay=_env_float("RECONNECT_BASE_DELAY", "2.0"),
        reconnect_max_delay=_env_float("RECONNECT_MAX_DELAY", "60.0"),
        log_file=os.getenv("LOG_FILE", "./log/client_mqttd.log"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_max_kb=_env_int("LOG_MAX_KB", "10"),
        pid_file=os.getenv("PID_FILE", "/tmp/.client_mqttd.pid"),
        metrics_port=_env_int("METRICS_PORT", "0"),
    )

    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        try:
            settings = replace(settings, **overrides)
        except TypeError as e:
            raise ConfigError(f"Unknown setting override: {e}") from e

    return validate_settings(settings)
