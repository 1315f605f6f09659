"""Domain models for Braineath."""
