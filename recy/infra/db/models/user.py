"""
User SQLAlchemy model.

Users are created by the auth flow; forms only reference them.
"""
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recy.infra.db.base import Base

if TYPE_CHECKING:
    from recy.infra.db.models.form import Form


class ProfileType(str, Enum):
    """Role classification of a user."""
    RECYCLER = "RECYCLER"
    WASTE_GENERATOR = "WASTE_GENERATOR"
    PARTNER = "PARTNER"


# Profile types allowed to attach video/invoice evidence to a form
UPLOADER_PROFILE_TYPES = frozenset({ProfileType.RECYCLER, ProfileType.WASTE_GENERATOR})


class User(Base):
    """A platform user identified by an external auth identity."""
    
    __tablename__ = "users"
    
    auth_user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    profile_type: Mapped[str] = mapped_column(String(20), default=ProfileType.RECYCLER.value)
    
    forms: Mapped[list["Form"]] = relationship("Form", back_populates="user")
    
    @property
    def can_upload_evidence(self) -> bool:
        return ProfileType(self.profile_type) in UPLOADER_PROFILE_TYPES
    
    def __repr__(self) -> str:
        return f"<User(id={self.id}, profile_type={self.profile_type})>"
