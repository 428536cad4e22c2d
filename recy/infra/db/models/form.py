"""
Form SQLAlchemy model.

A Form is one submission event grouping up to five residue declarations.
The per-category quantities are a snapshot of the submitted amounts; the
Document rows carry the authoritative values used for reporting.
"""
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recy.infra.db.base import Base

if TYPE_CHECKING:
    from recy.infra.db.models.document import Document
    from recy.infra.db.models.user import User


class Form(Base):
    """A residue submission owned by exactly one user."""
    
    __tablename__ = "forms"
    
    # Quantities in kilograms
    glass_kgs: Mapped[float] = mapped_column(Float, default=0.0)
    metal_kgs: Mapped[float] = mapped_column(Float, default=0.0)
    organic_kgs: Mapped[float] = mapped_column(Float, default=0.0)
    paper_kgs: Mapped[float] = mapped_column(Float, default=0.0)
    plastic_kgs: Mapped[float] = mapped_column(Float, default=0.0)
    
    # Ownership
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    wallet_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    
    # Review / publication
    is_form_authorized_by_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    form_metadata_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    
    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="forms")
    documents: Mapped[list["Document"]] = relationship(
        "Document",
        back_populates="form",
        cascade="all, delete-orphan",
    )
    
    def __repr__(self) -> str:
        return f"<Form(id={self.id}, user_id={self.user_id}, authorized={self.is_form_authorized_by_admin})>"
