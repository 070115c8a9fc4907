"""Monitoring layer - Métricas y observabilidad."""

from .stats import DeliveryStats

__all__ = ["DeliveryStats"]
