"""
Error kinds and the user-facing text attached to them.

Both enums are closed and immutable; nothing in the application mutates
the catalog at runtime.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of failure the API surfaces to callers."""
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"
    PERSISTENCE_FAILURE = "persistence_failure"
    STORAGE_FAILURE = "storage_failure"


class Message(str, Enum):
    """Display text for every known failure."""
    # Users
    USER_EXISTS = "User already exists"
    USER_NOT_FOUND = "User not found"
    USER_DOES_NOT_HAS_PERMISSION_TO_UPLOAD = "User do not have permission to submit files"
    
    # Forms
    FORM_NOT_FOUND = "Form not found"
    FORM_DOES_NOT_HAVE_DOCUMENT = "Form does not provides the document requested"
    
    # Files
    INVALID_FILE_TYPE = "Invalid file type"
    FILE_NAME_COULD_NOT_BE_CREATED = "File name could not be created"
    STORAGE_UNAVAILABLE = "Storage service could not complete the request"
    
    # Persistence
    PERSISTENCE_FAILED = "Database operation failed"
