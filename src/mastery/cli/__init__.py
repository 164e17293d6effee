"""Command-line interface for the mastery log."""
