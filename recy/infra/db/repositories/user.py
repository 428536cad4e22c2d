"""
User repository - resolves users by auth identity or internal id.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recy.infra.db.models.user import User
from recy.infra.db.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User lookups."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(User, session)
    
    async def get_by_auth_user_id(self, auth_user_id: str) -> Optional[User]:
        """Get a user by the identity issued by the auth provider."""
        stmt = select(User).where(User.auth_user_id == auth_user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
