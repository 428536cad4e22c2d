"""
Base repository class with common CRUD operations.

Writes only flush to the session. Committing is the caller's job, so a
service can group several writes into one transaction.
"""
from typing import Generic, Optional, Sequence, Type, TypeVar
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recy.infra.db.base import Base

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository providing common CRUD operations.
    
    Inherit from this class and specify the model type:
        class FormRepository(BaseRepository[Form]):
            def __init__(self, session: AsyncSession):
                super().__init__(Form, session)
    """
    
    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session
    
    async def create(self, **kwargs) -> ModelType:
        """Create a new record (flushed, not committed)."""
        if "id" not in kwargs:
            kwargs["id"] = str(uuid4())
        
        obj = self.model(**kwargs)
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj
    
    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """Get a record by ID."""
        stmt = select(self.model).where(self.model.id == id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
    
    async def get_all(
        self, 
        limit: Optional[int] = None, 
        offset: int = 0
    ) -> Sequence[ModelType]:
        """Get all records, newest first."""
        stmt = select(self.model).order_by(self.model.created_at.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()
    
    async def update(self, id: str, **kwargs) -> Optional[ModelType]:
        """Update a record by ID. Returns None when it does not exist."""
        existing = await self.get_by_id(id)
        if existing is None:
            return None
        
        for key, value in kwargs.items():
            setattr(existing, key, value)
        await self.session.flush()
        await self.session.refresh(existing)
        return existing
    
    async def exists(self, id: str) -> bool:
        """Check if a record exists."""
        stmt = select(self.model.id).where(self.model.id == id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None
    
    async def count(self) -> int:
        """Count all records."""
        stmt = select(func.count()).select_from(self.model)
        result = await self.session.execute(stmt)
        return result.scalar_one()
