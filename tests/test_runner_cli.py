"""Tests del runner, la CLI y la fontanería de proceso."""

import logging
import os
import signal
from unittest.mock import patch

import pytest

from fakes import FakeBroker, FakeSensor, MemoryStorage, make_settings
from telemetry_client import __version__
from telemetry_client.cli import build_parser, main
from telemetry_client.core.domain.errors import StorageError
from telemetry_client.process import (
    check_running,
    install_signal_handlers,
    read_pid,
    record_pid,
    remove_pid,
)
from telemetry_client.runner import build_connection, run


# =============================================================================
# RUNNER
# =============================================================================

class StopAfterFirstRead(FakeSensor):
    def __init__(self, stop_event):
        super().__init__([21.5])
        self._stop_event = stop_event

    def read_value(self):
        self._stop_event.set()
        return super().read_value()


class TestRunner:

    def test_run_delivers_and_releases_resources(self, settings, stop_event):
        broker = FakeBroker()
        storage = MemoryStorage()

        stats = run(
            settings, stop_event,
            sensor=StopAfterFirstRead(stop_event), broker=broker, storage=storage,
        )

        assert stats.iterations == 1
        assert stats.published == 1
        assert broker.published[0].endswith(b",21.50")
        assert storage.closed is True
        assert len(broker.closed) == 1

    def test_run_logs_connection_stats_on_exit(self, settings, stop_event, caplog):
        with caplog.at_level(logging.INFO, logger="telemetry_client.runner"):
            run(
                settings, stop_event,
                sensor=StopAfterFirstRead(stop_event), broker=FakeBroker(), storage=MemoryStorage(),
            )

        assert "Connection stats" in caplog.text
        assert "connect_attempts" in caplog.text

    def test_run_releases_resources_on_storage_error(self, settings, stop_event):
        class BrokenStorage(MemoryStorage):
            def append(self, data):
                raise StorageError("read-only filesystem")

        storage = BrokenStorage()

        with pytest.raises(StorageError):
            run(
                settings, stop_event,
                sensor=FakeSensor(), broker=FakeBroker(connect_results=[False]), storage=storage,
            )

        assert storage.closed is True

    def test_build_connection_uses_backoff_settings(self):
        connection = build_connection(
            make_settings(reconnect_base_delay=3.0, reconnect_max_delay=30.0), broker=FakeBroker()
        )

        assert connection.reconnect_due() is True
        assert connection.get_stats()["state"] == "disconnected"


# =============================================================================
# CLI
# =============================================================================

@pytest.fixture
def cli_env(clean_env, tmp_path):
    pid_file = tmp_path / "client.pid"
    clean_env.setenv("PID_FILE", str(pid_file))
    clean_env.setenv("QUEUE_DB_FILE", str(tmp_path / "queue.db"))
    with patch("telemetry_client.cli.setup_logging"), \
            patch("telemetry_client.cli.install_signal_handlers"):
        yield pid_file


class TestCli:

    def test_parser_options(self):
        args = build_parser().parse_args(["-b", "broker.local", "-p", "8883", "-t", "30", "-d"])

        assert args.broker == "broker.local"
        assert args.port == 8883
        assert args.readtime == 30.0
        assert args.debug is True

    def test_version_flag(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["-v"])

        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_missing_broker_is_config_error(self, cli_env, capsys):
        assert main(["-d"]) == 2
        assert "MQTT_BROKER_HOST" in capsys.readouterr().err

    def test_debug_run_in_foreground(self, cli_env):
        with patch("telemetry_client.cli.run") as run_mock, \
                patch("telemetry_client.cli.daemonize") as daemonize_mock:
            assert main(["-d", "-b", "broker.local", "-t", "5"]) == 0

        daemonize_mock.assert_not_called()
        settings = run_mock.call_args.args[0]
        assert settings.broker_host == "broker.local"
        assert settings.sample_interval == 5.0
        assert settings.log_level == "DEBUG"
        assert not cli_env.exists()

    def test_serial_sets_device_id(self, cli_env):
        with patch("telemetry_client.cli.run") as run_mock:
            assert main(["-d", "-b", "broker.local", "-s", "7"]) == 0

        assert run_mock.call_args.args[0].device_id == "rpi#0007"

    def test_storage_error_exit_code(self, cli_env):
        with patch("telemetry_client.cli.run", side_effect=StorageError("disk gone")):
            assert main(["-d", "-b", "broker.local"]) == 1

        assert not cli_env.exists()

    def test_already_running(self, cli_env):
        cli_env.write_text(f"{os.getppid()}\n")

        with patch("telemetry_client.cli.run") as run_mock:
            assert main(["-d", "-b", "broker.local"]) == 1

        run_mock.assert_not_called()
        assert cli_env.exists()


# =============================================================================
# PROCESO
# =============================================================================

class TestPidFile:

    def test_record_and_remove(self, tmp_path):
        pid_file = str(tmp_path / "run" / "client.pid")

        record_pid(pid_file)
        assert read_pid(pid_file) == os.getpid()
        assert check_running(pid_file) is None  # somos nosotros

        remove_pid(pid_file)
        assert read_pid(pid_file) is None

    def test_remove_keeps_foreign_pid(self, tmp_path):
        pid_file = tmp_path / "client.pid"
        pid_file.write_text("1\n")

        remove_pid(str(pid_file))

        assert pid_file.exists()

    def test_stale_pid_is_not_running(self, tmp_path):
        pid_file = tmp_path / "client.pid"
        pid_file.write_text("garbage\n")

        assert check_running(str(pid_file)) is None


@pytest.fixture
def restore_signals():
    saved = {s: signal.getsignal(s) for s in (signal.SIGINT, signal.SIGTERM, signal.SIGPIPE)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)


class TestSignals:

    def test_sigterm_sets_stop_event(self, stop_event, restore_signals):
        install_signal_handlers(stop_event)

        signal.getsignal(signal.SIGTERM)(signal.SIGTERM, None)

        assert stop_event.is_set()
        assert signal.getsignal(signal.SIGPIPE) == signal.SIG_IGN

    def test_sigint_sets_stop_event(self, stop_event, restore_signals):
        install_signal_handlers(stop_event)

        signal.getsignal(signal.SIGINT)(signal.SIGINT, None)

        assert stop_event.is_set()
