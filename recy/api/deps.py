"""
Shared FastAPI dependencies.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recy.config import Settings, get_settings
from recy.infra.db.session import get_db
from recy.infra.storage.gateway import StorageGateway
from recy.services.forms_service import FormsService
from recy.services.users_service import UsersService


def get_storage(request: Request) -> StorageGateway:
    """Storage gateway created once at startup (app.state.storage)."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise RuntimeError("Storage gateway (app.state.storage) is not initialized")
    return storage


def get_forms_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> FormsService:
    return FormsService(db, storage, settings)


def get_users_service(db: AsyncSession = Depends(get_db)) -> UsersService:
    return UsersService(db)
