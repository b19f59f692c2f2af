"""Toll payment API with simulated blockchain confirmation."""

__version__ = "0.1.0"
