"""Mastery log: practice attempt logging with batch and mastery tracking."""

__version__ = "0.1.0"
