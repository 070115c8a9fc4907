"""Transport layer - Publicación MQTT."""

from .mqtt_client import MQTTSession, PahoBrokerClient

__all__ = ["MQTTSession", "PahoBrokerClient"]
