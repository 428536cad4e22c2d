"""
Typed application errors.

Each error carries an ErrorKind so the HTTP layer can map it to a status
code without inspecting messages.
"""
from typing import Optional

from recy.messages import ErrorKind, Message


class RecyError(Exception):
    """Base class for failures raised by services and gateways."""
    
    kind: ErrorKind = ErrorKind.PERSISTENCE_FAILURE
    
    def __init__(self, message: Message, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        text = message.value if detail is None else f"{message.value}: {detail}"
        super().__init__(text)


class NotFoundError(RecyError):
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(RecyError):
    kind = ErrorKind.FORBIDDEN


class ConflictError(RecyError):
    kind = ErrorKind.CONFLICT


class InvalidInputError(RecyError):
    kind = ErrorKind.INVALID_INPUT


class PersistenceError(RecyError):
    kind = ErrorKind.PERSISTENCE_FAILURE
    
    def __init__(self, message: Message = Message.PERSISTENCE_FAILED, detail: Optional[str] = None):
        super().__init__(message, detail)


class StorageError(RecyError):
    kind = ErrorKind.STORAGE_FAILURE
    
    def __init__(self, message: Message = Message.STORAGE_UNAVAILABLE, detail: Optional[str] = None):
        super().__init__(message, detail)


STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.PERSISTENCE_FAILURE: 500,
    ErrorKind.STORAGE_FAILURE: 502,
}
