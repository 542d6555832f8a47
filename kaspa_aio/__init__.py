"""Kaspa All-in-One — profile dependency and reconfiguration engine."""

__version__ = "0.1.0"
