"""
Repositories for database access.
"""
from recy.infra.db.repositories.base import BaseRepository
from recy.infra.db.repositories.user import UserRepository
from recy.infra.db.repositories.form import FormRepository
from recy.infra.db.repositories.document import DocumentRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "FormRepository",
    "DocumentRepository",
]
