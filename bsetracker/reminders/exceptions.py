"""Error kinds raised by the reminder scheduler and dispatcher.

Each carries the HTTP status the API layer reports it with.
"""


class ReminderError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ReminderError):
    """Missing credentials or settings; fatal to the invocation."""
    status_code = 500


class NotFoundError(ReminderError):
    """Profile or reminder absent."""
    status_code = 404


class ValidationError(ReminderError):
    """Malformed request input."""
    status_code = 400


class DeliveryError(ReminderError):
    """Notification send failed; retried on the next dispatch pass."""
    status_code = 502


class PersistenceError(ReminderError):
    """Store read/write failed."""
    status_code = 500
