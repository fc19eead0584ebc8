"""Liveness package __init__.py"""
from .server import LivenessServer

__all__ = ["LivenessServer"]
