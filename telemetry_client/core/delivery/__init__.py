"""Delivery layer - Bucle de store-and-forward."""

from .loop import DeliveryLoop

__all__ = ["DeliveryLoop"]
