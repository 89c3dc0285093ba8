"""Barista Bot: slot-filling order engine for a Spanish voice coffee assistant."""

__version__ = "0.1.0"
