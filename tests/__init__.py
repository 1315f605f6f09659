"""Tests for Braineath."""
