"""Exception types raised by the tutor."""


class TutorError(Exception):
    """Base class for all tutor errors."""


class ValidationError(TutorError, ValueError):
    """Malformed or out-of-range input, rejected before any state is touched."""


class StoreUnavailable(TutorError):
    """The progress store could not be read or written."""
