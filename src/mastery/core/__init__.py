"""Core engine for attempt logging.

Modules:
- identity: find-or-create Subject, Material and Problem
- id_generator: human-readable problem identifiers
- batches: open/close batches of consecutive practice
- attempt_recorder: attempt numbering, persistence and resource links
- mastery: streak-based solved detection
- attempt_log: log_attempt flow plus update/delete operations
"""

__all__ = [
    "identity",
    "id_generator",
    "batches",
    "attempt_recorder",
    "mastery",
    "attempt_log",
]
