"""Sensor interfaces."""

from .camera import Camera, Frame

__all__ = ["Camera", "Frame"]
