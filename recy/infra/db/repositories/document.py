"""
Document repository - evidence documents of a form and reporting sums.
"""
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recy.infra.db.models.document import Document
from recy.infra.db.models.form import Form
from recy.infra.db.models.user import User
from recy.infra.db.repositories.base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Repository for Document rows."""
    
    def __init__(self, session: AsyncSession):
        super().__init__(Document, session)
    
    async def list_for_form(self, form_id: str) -> Sequence[Document]:
        """Get the documents of a form, oldest first."""
        stmt = (
            select(Document)
            .where(Document.form_id == form_id)
            .order_by(Document.created_at, Document.id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
    
    async def get_for_form_and_residue(self, form_id: str, residue_type: str) -> Optional[Document]:
        """Get the first document of a form for one residue type."""
        stmt = (
            select(Document)
            .where(Document.form_id == form_id)
            .where(Document.residue_type == residue_type)
            .order_by(Document.created_at)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
    
    async def sum_amount_by_profile_type(self, profile_type: str) -> float:
        """Sum of document amounts over forms owned by users of a profile type.
        
        Returns 0.0 when no document matches.
        """
        stmt = (
            select(func.coalesce(func.sum(Document.amount), 0.0))
            .join(Form, Document.form_id == Form.id)
            .join(User, Form.user_id == User.id)
            .where(User.profile_type == profile_type)
        )
        result = await self.session.execute(stmt)
        return float(result.scalar_one())
