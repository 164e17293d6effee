"""Web API for the mastery log."""
