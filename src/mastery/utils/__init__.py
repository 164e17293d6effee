"""Utility helpers for the mastery log."""
