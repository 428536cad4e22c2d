"""
API Schemas for Users.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from recy.infra.db.models.user import ProfileType


class UserCreate(BaseModel):
    """Register the authenticated caller."""
    email: str = Field(..., min_length=3, max_length=320)
    profile_type: ProfileType = ProfileType.RECYCLER


class UserDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    id: str
    auth_user_id: str
    email: str
    profile_type: ProfileType
    created_at: datetime
