"""Braineath - a local-first wellness journal and record store."""

__version__ = "0.1.0"
