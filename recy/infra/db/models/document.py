"""
Document SQLAlchemy model.

A Document is the declared amount of one residue category for a form,
plus the storage keys of its evidence files. Documents are written once
during form submission and never updated.
"""
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recy.infra.db.base import Base

if TYPE_CHECKING:
    from recy.infra.db.models.form import Form


class Document(Base):
    """Residue declaration and evidence keys for one category of a form."""
    
    __tablename__ = "documents"
    
    residue_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[float] = mapped_column(Float, default=0.0)
    
    # Storage keys, not URLs
    video_file_name: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    invoices_file_name: Mapped[list] = mapped_column(JSON, default=list)
    
    form_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    form: Mapped["Form"] = relationship("Form", back_populates="documents")
    
    def __repr__(self) -> str:
        return f"<Document(id={self.id}, form_id={self.form_id}, residue_type={self.residue_type})>"
