"""Gestión de la sesión con el broker.

Máquina de estados:
    DISCONNECTED --connect() ok-->           CONNECTED
    CONNECTED    --publish() falla-->        DISCONNECTED
    CONNECTED    --sonda detecta caída-->    DISCONNECTED
    *            --teardown()-->             DISCONNECTED

Un fallo de publicación siempre derriba la sesión: el siguiente tick
reconecta desde cero en lugar de reutilizar un handle medio roto.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from common.config import Settings

from ..domain.errors import ConnectError, PublishError
from ..domain.interfaces import IBrokerClient
from ..domain.reading import Payload
from ..monitoring.metrics import BROKER_CONNECTED
from .backoff import BackoffConfig, ReconnectBackoff

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Estados de la sesión con el broker."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ConnectionManager:
    """Dueño único del handle de sesión con el broker.

    Uso:
        conn = ConnectionManager(PahoBrokerClient())
        if not conn.is_connected() and conn.reconnect_due():
            conn.connect(settings)
        conn.publish(settings.topic, payload)
    """

    def __init__(
        self,
        broker: IBrokerClient,
        backoff: Optional[ReconnectBackoff] = None,
    ):
        self._broker = broker
        # Sin backoff explícito: reintento en cada tick
        self._backoff = backoff or ReconnectBackoff(BackoffConfig(base_delay=0))

        self._session: Any = None
        self._state = ConnectionState.DISCONNECTED

        self._connect_attempts = 0
        self._connect_failures = 0
        self._publish_failures = 0
        self._disconnects_detected = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    def reconnect_due(self) -> bool:
        """True si el backoff permite un nuevo intento de conexión."""
        return self._backoff.ready()

    def connect(self, settings: Settings) -> None:
        """Abre una sesión nueva, derribando antes la existente.

        Raises:
            ConnectError: si falla; el estado queda DISCONNECTED
        """
        self.teardown()
        self._connect_attempts += 1

        try:
            session = self._broker.connect(
                settings.broker_host,
                settings.broker_port,
                settings.client_id,
                settings.username,
                settings.password,
            )
        except ConnectError:
            self._on_connect_failure()
            raise
        except Exception as e:
            logger.exception("[CONN] Unexpected error connecting to %s:%d", settings.broker_host, settings.broker_port)
            self._on_connect_failure()
            raise ConnectError(f"unexpected connect error: {e}") from e

        self._session = session
        self._state = ConnectionState.CONNECTED
        self._backoff.reset()
        BROKER_CONNECTED.set(1)
        logger.info(
            "[CONN] DISCONNECTED -> CONNECTED (%s:%d)",
            settings.broker_host, settings.broker_port,
        )

    def _on_connect_failure(self) -> None:
        self._connect_failures += 1
        self._state = ConnectionState.DISCONNECTED
        self._backoff.record_failure()

    def is_connected(self) -> bool:
        """Sonda de vida contra la sesión actual.

        Si el broker cerró la sesión, la derriba y devuelve False.
        """
        if self._session is None:
            return False

        try:
            alive = self._broker.is_connected(self._session)
        except Exception as e:
            logger.warning("[CONN] Liveness probe failed: %s", e)
            alive = False

        if not alive:
            self._disconnects_detected += 1
            logger.warning("[CONN] CONNECTED -> DISCONNECTED (session lost)")
            self.teardown()
            return False
        return True

    def publish(self, topic: str, payload: Payload) -> None:
        """Publica un payload en la sesión actual.

        Raises:
            PublishError: sin sesión o fallo del broker; la sesión queda derribada
        """
        if self._session is None:
            raise PublishError("not connected")

        try:
            self._broker.publish(self._session, topic, payload.data)
        except PublishError as e:
            self._on_publish_failure(e)
            raise
        except Exception as e:
            self._on_publish_failure(e)
            raise PublishError(f"unexpected publish error: {e}") from e

    def _on_publish_failure(self, error: Exception) -> None:
        self._publish_failures += 1
        logger.warning(
            "[CONN] CONNECTED -> DISCONNECTED (publish failed: %s)",
            str(error)[:100],
        )
        self.teardown()

    def teardown(self) -> None:
        """Libera la sesión. Idempotente."""
        session, self._session = self._session, None
        self._state = ConnectionState.DISCONNECTED
        if session is None:
            return

        BROKER_CONNECTED.set(0)
        try:
            self._broker.close(session)
        except Exception as e:
            logger.warning("[CONN] Close error: %s", e)

    def get_stats(self) -> dict:
        """Estadísticas de la conexión."""
        return {
            "state": self._state.value,
            "connect_attempts": self._connect_attempts,
            "connect_failures": self._connect_failures,
            "publish_failures": self._publish_failures,
            "disconnects_detected": self._disconnects_detected,
            "backoff_failures": self._backoff.failures,
            "next_attempt_in": round(self._backoff.remaining(), 1),
        }
