"""Interfaces abstractas de los colaboradores externos.

Desacoplan el núcleo (muestreo, conexión, cola, bucle de entrega) de los
detalles de hardware, protocolo y almacenamiento. Cualquier implementación
(DS18B20, paho-mqtt, SQLite, fakes de test) puede cumplirlas.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from .reading import QueueEntry


class ISensor(ABC):
    """Sensor escalar de una sola lectura bloqueante."""

    @abstractmethod
    def read_value(self) -> float:
        """Lee un valor.

        Raises:
            SensorError: hardware no encontrado, error de E/S o de parseo
        """


class IBrokerClient(ABC):
    """Cliente de broker publish/subscribe basado en sesiones.

    Implementations:
    - PahoBrokerClient: MQTT vía paho-mqtt
    - fakes en tests
    """

    @abstractmethod
    def connect(
        self,
        host: str,
        port: int,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Any:
        """Abre y autentica una sesión.

        Returns:
            Handle de sesión opaco

        Raises:
            ConnectError: si no se pudo establecer la sesión
        """

    @abstractmethod
    def is_connected(self, session: Any) -> bool:
        """Sonda de vida de la sesión (detecta desconexiones del broker)."""

    @abstractmethod
    def publish(self, session: Any, topic: str, data: bytes) -> None:
        """Publica un mensaje.

        Raises:
            PublishError: si el broker no confirmó la publicación
        """

    @abstractmethod
    def close(self, session: Any) -> None:
        """Libera la sesión. No debe lanzar."""


class IQueueStorage(ABC):
    """Secuencia ordenada y persistente de blobs."""

    @abstractmethod
    def append(self, data: bytes) -> None:
        """Añade al final; duradero al retornar."""

    @abstractmethod
    def read_oldest(self) -> Optional[QueueEntry]:
        """Entrada más antigua o None si está vacía."""

    @abstractmethod
    def delete(self, entry_id: int) -> None:
        """Borra una entrada concreta (no-op si ya no existe)."""

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def close(self) -> None:
        pass
