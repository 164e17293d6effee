"""Error types raised by the mastery engine.

All engine errors derive from MasteryError so front ends can catch them
in one place and surface the message to the user.
"""


class MasteryError(Exception):
    """Base class for engine errors."""

    pass


class ValidationError(MasteryError):
    """Raised when a required field is empty or a value is out of range."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(message)


class TimeFormatError(MasteryError):
    """Raised when a stored timestamp cannot be parsed."""

    def __init__(self, value: str, reason: str = ""):
        self.value = value
        detail = f": {reason}" if reason else ""
        super().__init__(f"Time parse error for '{value}'{detail}")


class NotFoundError(MasteryError):
    """Raised when a referenced row does not exist."""

    def __init__(self, entity: str, entity_id: int | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class PersistenceError(MasteryError):
    """Raised when the underlying store fails.

    The driver's message is kept verbatim.
    """

    pass
