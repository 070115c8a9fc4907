"""Backoff exponencial entre intentos de reconexión.

Con base_delay=0 queda deshabilitado: se reintenta en cada tick.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class BackoffConfig:
    """Configuración del backoff de reconexión."""

    base_delay: float = 2.0  # segundos
    max_delay: float = 60.0  # segundos
    exponential_base: float = 2.0
    jitter: bool = True  # ±25%

    @property
    def enabled(self) -> bool:
        return self.base_delay > 0

    def calculate_delay(self, failures: int) -> float:
        """Delay tras `failures` fallos consecutivos (1-indexed)."""
        if not self.enabled or failures <= 0:
            return 0.0

        delay = self.base_delay * (self.exponential_base ** (failures - 1))
        delay = min(delay, self.max_delay)

        if self.jitter:
            jitter_range = delay * 0.25
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.0, delay)


class ReconnectBackoff:
    """Lleva la cuenta de fallos y decide cuándo toca el siguiente intento."""

    def __init__(self, config: Optional[BackoffConfig] = None, clock: Optional[Callable[[], float]] = None):
        self._config = config or BackoffConfig()
        self._clock = clock or time.monotonic
        self._failures = 0
        self._next_attempt_at: float = 0.0

    @property
    def failures(self) -> int:
        return self._failures

    def ready(self) -> bool:
        """True si ya se puede intentar conectar."""
        return self._clock() >= self._next_attempt_at

    def remaining(self) -> float:
        return max(0.0, self._next_attempt_at - self._clock())

    def record_failure(self) -> float:
        """Registra un fallo; devuelve el delay hasta el próximo intento."""
        self._failures += 1
        delay = self._config.calculate_delay(self._failures)
        self._next_attempt_at = self._clock() + delay
        if delay > 0:
            logger.info(
                "[CONN] Reconnect backoff: failures=%d next_attempt_in=%.1fs",
                self._failures, delay,
            )
        return delay

    def reset(self) -> None:
        self._failures = 0
        self._next_attempt_at = 0.0
