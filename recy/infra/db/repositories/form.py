"""
Form repository for CRUD operations on forms.
"""
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recy.infra.db.models.form import Form
from recy.infra.db.repositories.base import BaseRepository


class FormRepository(BaseRepository[Form]):
    """Repository for Form CRUD operations."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Form, session)
    
    async def get_by_user(self, user_id: str) -> Sequence[Form]:
        """Get all forms owned by a user, newest first."""
        stmt = (
            select(Form)
            .where(Form.user_id == user_id)
            .order_by(Form.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
    
    async def set_authorization(self, id: str, is_authorized: bool) -> Form | None:
        return await self.update(id, is_form_authorized_by_admin=is_authorized)
    
    async def set_metadata_url(self, id: str, url: str) -> Form | None:
        return await self.update(id, form_metadata_url=url)
