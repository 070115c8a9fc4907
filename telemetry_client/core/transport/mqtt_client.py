"""Cliente MQTT para publicación de lecturas."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

import paho.mqtt.client as mqtt

from ..domain.errors import ConnectError, PublishError
from ..domain.interfaces import IBrokerClient

logger = logging.getLogger(__name__)


@dataclass
class MQTTSession:
    """Handle de una sesión paho: un Client por sesión, sin reutilización."""
    client: mqtt.Client
    host: str
    port: int
    connected: threading.Event = field(default_factory=threading.Event)
    connack: threading.Event = field(default_factory=threading.Event)
    refused_reason: Optional[str] = None


class PahoBrokerClient(IBrokerClient):
    """Cliente MQTT ligero basado en paho-mqtt.

    Responsabilidades:
    - Abrir/cerrar sesiones con el broker (con timeout acotado)
    - Detectar desconexiones iniciadas por el broker
    - Publicar esperando el handshake de QoS
    """

    def __init__(
        self,
        keepalive: int = 60,
        qos: int = 1,
        connect_timeout: float = 5.0,
        publish_timeout: float = 5.0,
    ):
        self.keepalive = keepalive
        self.qos = qos
        self.connect_timeout = connect_timeout
        self.publish_timeout = publish_timeout

    def connect(
        self,
        host: str,
        port: int,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> MQTTSession:
        client = mqtt.Client(
            client_id=client_id,
            protocol=mqtt.MQTTv311,
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        )
        client.connect_timeout = self.connect_timeout
        session = MQTTSession(client=client, host=host, port=port)

        client.on_connect = self._make_on_connect(session)
        client.on_disconnect = self._make_on_disconnect(session)

        if username:
            client.username_pw_set(username, password)

        logger.info("[MQTT] Connecting to %s:%d as %s", host, port, client_id)
        try:
            client.connect(host, port, keepalive=self.keepalive)
        except (OSError, ValueError) as e:
            raise ConnectError(f"connect to {host}:{port} failed: {e}") from e

        client.loop_start()

        # CONNACK (aceptado o rechazado) despierta la espera
        got_connack = session.connack.wait(self.connect_timeout)
        if got_connack and session.refused_reason is None and session.connected.is_set():
            return session

        self.close(session)
        if session.refused_reason:
            raise ConnectError(f"broker refused connection: {session.refused_reason}")
        if got_connack:
            raise ConnectError(f"connection to {host}:{port} dropped right after CONNACK")
        raise ConnectError(f"connection to {host}:{port} timed out after {self.connect_timeout}s")

    def _make_on_connect(self, session: MQTTSession):
        def on_connect(client, userdata, flags, reason_code, properties=None):
            if reason_code.is_failure:
                session.refused_reason = str(reason_code)
                session.connected.clear()
                logger.error("[MQTT] Connection refused: %s", reason_code)
            else:
                session.connected.set()
                logger.info("[MQTT] Connected to broker %s:%d", session.host, session.port)
            session.connack.set()
        return on_connect

    def _make_on_disconnect(self, session: MQTTSession):
        def on_disconnect(client, userdata, flags, reason_code, properties=None):
            session.connected.clear()
            logger.warning("[MQTT] Disconnected (reason=%s)", reason_code)
        return on_disconnect

    def is_connected(self, session: MQTTSession) -> bool:
        return session.connected.is_set() and session.client.is_connected()

    def publish(self, session: MQTTSession, topic: str, data: bytes) -> None:
        try:
            info = session.client.publish(topic, data, qos=self.qos)
        except (OSError, ValueError) as e:
            raise PublishError(f"publish to {topic} failed: {e}") from e

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"publish to {topic} failed: {mqtt.error_string(info.rc)}")

        try:
            info.wait_for_publish(timeout=self.publish_timeout)
        except (RuntimeError, ValueError) as e:
            raise PublishError(f"publish to {topic} failed: {e}") from e

        if not info.is_published():
            raise PublishError(
                f"publish to {topic} not acknowledged within {self.publish_timeout}s"
            )
        logger.debug("[MQTT] Published %d bytes to %s (mid=%d)", len(data), topic, info.mid)

    def close(self, session: MQTTSession) -> None:
        session.connected.clear()
        try:
            session.client.disconnect()
        except Exception as e:
            logger.warning("[MQTT] Disconnect error: %s", e)
        # El hilo de red se detiene aunque disconnect() haya fallado
        try:
            session.client.loop_stop()
        except Exception as e:
            logger.warning("[MQTT] Network loop stop error: %s", e)
