"""
API Schemas - Pydantic models for request/response validation.
"""
from .forms import (
    AggregateFormByUserProfile,
    AuthorizeFormRequest,
    CreateFormInput,
    CreateFormResponse,
    DocumentDetail,
    FormDetail,
    FormDocumentsUrl,
    FormImageUpload,
    FormMetadataUpload,
    ResidueInput,
    ResidueUpload,
)
from .users import UserCreate, UserDetail

__all__ = [
    "AggregateFormByUserProfile",
    "AuthorizeFormRequest",
    "CreateFormInput",
    "CreateFormResponse",
    "DocumentDetail",
    "FormDetail",
    "FormDocumentsUrl",
    "FormImageUpload",
    "FormMetadataUpload",
    "ResidueInput",
    "ResidueUpload",
    "UserCreate",
    "UserDetail",
]
