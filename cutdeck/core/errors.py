"""
Error taxonomy for the CutDeck core.

ValidationError and NotFoundError are raised internally and turned into
logged no-ops at the public API boundary so interactive editing never
blocks. PersistenceError always reaches the caller. ParseError is only
raised by the strict command entry point.
"""
import functools

from ..utils.logger import logger


class CutDeckError(Exception):
    """Base class for all CutDeck errors."""


class ValidationError(CutDeckError):
    """Malformed or out-of-bounds time range, or an invalid field patch."""


class NotFoundError(CutDeckError):
    """An operation targeted a clip, track or media id that does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceError(CutDeckError):
    """A project file could not be read, written or parsed."""


class ParseError(CutDeckError):
    """A text command did not match any known template."""

    def __init__(self, command: str, hint: str = ""):
        message = f"Command not recognized: {command!r}"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)
        self.command = command
        self.hint = hint


def rejects_invalid(default=None):
    """
    Turn ValidationError/NotFoundError raised by an editing operation into a
    logged no-op returning `default`. Other errors propagate.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (ValidationError, NotFoundError) as e:
                logger.warning(f"{func.__name__} rejected: {e}")
                return default
        return wrapper
    return decorator
