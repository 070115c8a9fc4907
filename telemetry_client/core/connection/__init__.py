"""Connection layer - Ciclo de vida de la sesión con el broker."""

from .backoff import BackoffConfig, ReconnectBackoff
from .manager import ConnectionManager, ConnectionState

__all__ = ["BackoffConfig", "ReconnectBackoff", "ConnectionManager", "ConnectionState"]
