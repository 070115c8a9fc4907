"""Fontanería de proceso: señales, fichero PID y demonización."""

from __future__ import annotations

import logging
import os
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def install_signal_handlers(stop_event: threading.Event) -> None:
    """SIGINT/SIGTERM activan la parada; SIGPIPE se ignora."""

    def _handler(signum, _frame):
        if not stop_event.is_set():
            logger.warning("%s - stopping", signal.Signals(signum).name)
            stop_event.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_IGN)
    logger.info("install default signal handler")


def read_pid(pid_file: str) -> Optional[int]:
    try:
        raw = Path(pid_file).read_text().strip()
    except OSError:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Existe pero pertenece a otro usuario
        return True
    return True


def check_running(pid_file: str) -> Optional[int]:
    """PID de una instancia viva registrada en pid_file, o None."""
    pid = read_pid(pid_file)
    if pid is None or pid == os.getpid():
        return None
    return pid if pid_alive(pid) else None


def record_pid(pid_file: str) -> None:
    path = Path(pid_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{os.getpid()}\n")


def remove_pid(pid_file: str) -> None:
    if read_pid(pid_file) != os.getpid():
        return
    try:
        Path(pid_file).unlink()
    except FileNotFoundError:
        pass


def daemonize(nochdir: bool = True, noclose: bool = False) -> None:
    """Doble fork + setsid; stdio redirigido a /dev/null.

    nochdir=True mantiene el cwd (rutas relativas ./data y ./log).
    """
    if os.getppid() == 1:
        return

    if os.fork() > 0:
        os._exit(0)
    os.setsid()
    if os.fork() > 0:
        os._exit(0)

    os.umask(0o022)
    if not nochdir:
        os.chdir("/")

    if not noclose:
        sys.stdout.flush()
        sys.stderr.flush()
        devnull = os.open(os.devnull, os.O_RDWR)
        for fd in (0, 1, 2):
            os.dup2(devnull, fd)
        os.close(devnull)
