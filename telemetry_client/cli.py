"""CLI entry point del daemon de telemetría."""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Sequence

from prometheus_client import start_http_server

from common.config import get_settings

from . import __version__
from .core.domain.errors import ConfigError, StorageError
from .core.packet.formatter import make_device_id
from .process import check_running, daemonize, install_signal_handlers, record_pid, remove_pid
from .runner import run

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(logfile: str, level: str = "INFO", max_kb: int = 10) -> None:
    """Consola si logfile es "console"/"stderr"; si no, fichero rotativo."""
    if logfile in ("", "console", "stderr"):
        handler: logging.Handler = logging.StreamHandler()
    else:
        Path(logfile).parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(logfile, maxBytes=max_kb * 1024, backupCount=1)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="telemetry-client",
        description="Temperature MQTT client with store-and-forward delivery",
    )
    p.add_argument("-b", "--broker", help="broker hostname (MQTT_BROKER_HOST)")
    p.add_argument("-p", "--port", type=int, help="broker port (MQTT_BROKER_PORT)")
    p.add_argument("-t", "--readtime", type=float, help="sample interval in seconds, default 60")
    p.add_argument("-s", "--serial", type=int, help="device serial number, sets DEVICE_ID to rpi#NNNN")
    p.add_argument("-c", "--config", help="env file to load (TELEMETRY_ENV_FILE)")
    p.add_argument("-d", "--debug", action="store_true", help="run in foreground, log to console at DEBUG")
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {
        "broker_host": args.broker,
        "broker_port": args.port,
        "sample_interval": args.readtime,
    }
    if args.serial is not None:
        overrides["device_id"] = make_device_id(args.serial)
    if args.debug:
        overrides.update(log_file="console", log_level="DEBUG")

    try:
        settings = get_settings(args.config, **overrides)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(settings.log_file, settings.log_level, settings.log_max_kb)

    running_pid = check_running(settings.pid_file)
    if running_pid is not None:
        logger.error("Program already running (pid=%d, pidfile=%s)", running_pid, settings.pid_file)
        return 1

    if not args.debug:
        daemonize()
    record_pid(settings.pid_file)

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    if settings.metrics_port:
        start_http_server(settings.metrics_port)
        logger.info("Metrics exposed on :%d", settings.metrics_port)

    logger.info("program start running (version %s)", __version__)
    logger.info(
        "Config: broker=%s:%d topic=%s interval=%.1fs device=%s format=%s queue=%s",
        settings.broker_host,
        settings.broker_port,
        settings.topic,
        settings.sample_interval,
        settings.device_id,
        settings.payload_format,
        settings.queue_db_file,
    )

    try:
        run(settings, stop_event)
    except StorageError as e:
        logger.critical("Durable queue unavailable, exiting: %s", e)
        return 1
    finally:
        remove_pid(settings.pid_file)

    logger.info("program stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
