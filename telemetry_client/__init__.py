"""Cliente de telemetría con entrega store-and-forward.

Muestrea un sensor escalar, serializa la lectura y la publica en un
broker MQTT. Si la red o el broker no están disponibles, la lectura se
guarda en una cola SQLite y se re-entrega en orden al reconectar.
"""

__version__ = "1.0.0"
