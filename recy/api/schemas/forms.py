"""
API Schemas for Forms.

A form carries one ResidueInput per residue category. Evidence file names
sent here are the names the client wants to upload; the response returns
the storage keys and upload URLs actually issued.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recy.errors import RecyError
from recy.infra.db.models.user import ProfileType
from recy.infra.storage.gateway import check_file_name
from recy.services.residue import ResidueCategory, ResidueType


# ============================================================================
# Request Models
# ============================================================================

class ResidueInput(BaseModel):
    """Declared amount and optional evidence for one residue category."""
    amount: float = Field(..., ge=0, description="Quantity in kilograms")
    video_file_name: Optional[str] = Field(None, max_length=255)
    invoices_file_name: list[str] = Field(default_factory=list)
    
    @field_validator("video_file_name")
    @classmethod
    def blank_video_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v
    
    @field_validator("invoices_file_name")
    @classmethod
    def drop_blank_invoices(cls, v: list[str]) -> list[str]:
        return [name for name in v if name and name.strip()]
    
    @field_validator("video_file_name", "invoices_file_name")
    @classmethod
    def names_are_storable(cls, v):
        names = v if isinstance(v, list) else [v] if v else []
        for name in names:
            try:
                check_file_name(name)
            except RecyError as e:
                raise ValueError(str(e)) from e
        return v
    
    @property
    def has_evidence(self) -> bool:
        return bool(self.video_file_name) or bool(self.invoices_file_name)


def _empty_residue() -> ResidueInput:
    return ResidueInput(amount=0)


class CreateFormInput(BaseModel):
    """Request to submit a new form."""
    wallet_address: Optional[str] = Field(None, max_length=255)
    
    glass: ResidueInput = Field(default_factory=_empty_residue)
    metal: ResidueInput = Field(default_factory=_empty_residue)
    organic: ResidueInput = Field(default_factory=_empty_residue)
    paper: ResidueInput = Field(default_factory=_empty_residue)
    plastic: ResidueInput = Field(default_factory=_empty_residue)
    
    def residue(self, category: ResidueCategory) -> ResidueInput:
        return getattr(self, category.field)


class AuthorizeFormRequest(BaseModel):
    """Request to set the admin authorization flag of a form."""
    is_form_authorized: bool


# ============================================================================
# Response Models
# ============================================================================

class FormDetail(BaseModel):
    """A persisted form."""
    model_config = ConfigDict(from_attributes=True)
    
    id: str
    user_id: str
    wallet_address: Optional[str] = None
    glass_kgs: float = 0.0
    metal_kgs: float = 0.0
    organic_kgs: float = 0.0
    paper_kgs: float = 0.0
    plastic_kgs: float = 0.0
    is_form_authorized_by_admin: bool = False
    form_metadata_url: Optional[str] = None
    created_at: datetime


class DocumentDetail(BaseModel):
    """A persisted residue document."""
    model_config = ConfigDict(from_attributes=True)
    
    id: str
    form_id: str
    residue_type: ResidueType
    amount: float
    video_file_name: Optional[str] = None
    invoices_file_name: list[str] = Field(default_factory=list)
    created_at: datetime


class ResidueUpload(BaseModel):
    """Upload URLs and storage keys issued for one residue category."""
    model_config = ConfigDict(from_attributes=True)
    
    residue: ResidueType
    invoices_create_url: list[str] = Field(default_factory=list)
    invoices_file_name: list[str] = Field(default_factory=list)
    video_create_url: str = ""
    video_file_name: Optional[str] = None


class CreateFormResponse(BaseModel):
    """Created form plus the upload bundle the client must use."""
    form: FormDetail
    s3: list[ResidueUpload] = Field(default_factory=list)


class AggregateFormByUserProfile(BaseModel):
    """Total declared kilograms for one profile type."""
    id: ProfileType
    data: float


class FormDocumentsUrl(BaseModel):
    """Read URLs for the evidence of one residue category."""
    residue: ResidueType
    video_file_url: Optional[str] = None
    invoice_file_urls: list[str] = Field(default_factory=list)


class FormImageUpload(BaseModel):
    create_image_url: str


class FormMetadataUpload(BaseModel):
    create_metadata_url: str
    body: str
