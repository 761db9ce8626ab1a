"""
Error taxonomy for the sheet core.

Every service raises one of these so the HTTP layer can turn it into a
JSON response with a stable ``kind`` and status code. CodeCollision and
StoreUnavailable are marked retryable; the rest are final.
"""
import functools
import logging

from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError

log = logging.getLogger(__name__)


class SheetError(Exception):
    """Base class for all core failures."""
    status_code = 400
    retryable = False

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__.strip())
        self.message = str(self)

    def to_dict(self) -> dict:
        return {
            "error":     self.message,
            "kind":      self.__class__.__name__,
            "retryable": self.retryable,
        }


class NotFound(SheetError):
    """The requested sheet, code or question does not exist."""
    status_code = 404


class Forbidden(SheetError):
    """You do not have permission to do that."""
    status_code = 403


class QuotaExceeded(SheetError):
    """Sheet limit reached. Delete an existing sheet to create a new one."""
    status_code = 409

    def __init__(self, limit: int, message: str = None):
        super().__init__(
            message
            or f"You can only create a maximum of {limit} sheets. "
               "Please delete an existing sheet to create a new one."
        )
        self.limit = limit


class CodeCollision(SheetError):
    """That access code is already taken."""
    status_code = 409
    retryable = True

    def __init__(self, code: str, message: str = None):
        super().__init__(message or f"Access code {code} is already assigned to another sheet.")
        self.code = code


class ValidationError(SheetError):
    """The submitted data is invalid."""
    status_code = 400

    def __init__(self, message: str = None, fields: dict = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = self.fields
        return data


class StoreUnavailable(SheetError):
    """The database is temporarily unavailable. Please try again shortly."""
    status_code = 503
    retryable = True


def store_guard(fn):
    """Turn operational database failures into StoreUnavailable.

    The session is rolled back first so the caller can retry on a clean
    transaction. Integrity errors are left alone; services translate those
    themselves because their meaning depends on the constraint.
    """
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (OperationalError, PoolTimeoutError) as exc:
            from studysheets.extensions import db
            db.session.rollback()
            log.warning("Store unavailable during %s: %s", fn.__name__, exc)
            raise StoreUnavailable() from exc
    return wrapper
