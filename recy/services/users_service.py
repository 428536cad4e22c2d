"""
Users Service - the user directory consulted by the forms workflow.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from recy.errors import ConflictError, NotFoundError
from recy.infra.db.models.user import ProfileType, User
from recy.infra.db.repositories import UserRepository
from recy.messages import Message

logger = logging.getLogger(__name__)


class UsersService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)

    async def find_user_by_auth_user_id(self, auth_user_id: str) -> User:
        user = await self.users.get_by_auth_user_id(auth_user_id)
        if user is None:
            raise NotFoundError(Message.USER_NOT_FOUND)
        return user

    async def find_user_by_user_id(self, user_id: str) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(Message.USER_NOT_FOUND)
        return user

    async def register(self, auth_user_id: str, email: str, profile_type: ProfileType) -> User:
        """Create the user for an auth identity seen for the first time."""
        if await self.users.get_by_auth_user_id(auth_user_id) is not None:
            raise ConflictError(Message.USER_EXISTS)

        try:
            user = await self.users.create(
                auth_user_id=auth_user_id,
                email=email,
                profile_type=profile_type.value,
            )
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same identity
            await self.session.rollback()
            raise ConflictError(Message.USER_EXISTS) from e

        logger.info(f"Registered user {user.id} as {profile_type.value}")
        return user
