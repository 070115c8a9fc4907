"""Core module - Motor de entrega garantizada de telemetría.

Estructura:
- domain/      → Modelos, errores y contratos de colaboradores
- sensor/      → Driver DS18B20 y muestreo
- packet/      → Serialización de lecturas (text/json/alink)
- queue/       → Cola FIFO persistente (SQLite)
- transport/   → Cliente MQTT (paho)
- connection/  → Estado de la sesión con el broker + backoff
- delivery/    → Bucle de store-and-forward
- monitoring/  → Métricas y estadísticas
"""
