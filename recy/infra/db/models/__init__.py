"""
SQLAlchemy models for the RECY database.

Exports all models for easy importing.
"""
from recy.infra.db.base import Base

# Import all models so they're registered with Base
from recy.infra.db.models.user import User, ProfileType
from recy.infra.db.models.form import Form
from recy.infra.db.models.document import Document

__all__ = [
    "Base",
    "User",
    "ProfileType",
    "Form",
    "Document",
]
