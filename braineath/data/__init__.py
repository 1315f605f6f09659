"""Persistence layer for Braineath."""
