"""
Forms API Routes.

Form submission is open to any authenticated user; review, reporting and
publication endpoints require the admin role.
"""
import logging

from fastapi import APIRouter, Depends

from recy.auth.middleware import AuthUser, get_current_user, require_admin
from recy.services.forms_service import FormsService
from recy.services.residue import ResidueType

from ..deps import get_forms_service
from ..schemas.forms import (
    AggregateFormByUserProfile,
    AuthorizeFormRequest,
    CreateFormInput,
    CreateFormResponse,
    DocumentDetail,
    FormDetail,
    FormDocumentsUrl,
    FormImageUpload,
    FormMetadataUpload,
    ResidueUpload,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/forms", tags=["forms"])


@router.get("", response_model=list[FormDetail])
async def list_forms(
    _: AuthUser = Depends(require_admin),
    service: FormsService = Depends(get_forms_service),
) -> list[FormDetail]:
    """List every form, newest first."""
    forms = await service.list_all_forms()
    return [FormDetail.model_validate(form) for form in forms]


@router.get("/aggregate-by-user-profile", response_model=list[AggregateFormByUserProfile])
async def aggregate_form_by_user_profile(
    _: AuthUser = Depends(require_admin),
    service: FormsService = Depends(get_forms_service),
) -> list[AggregateFormByUserProfile]:
    """Total declared kilograms for RECYCLER and WASTE_GENERATOR users."""
    aggregates = await service.aggregate_by_user_profile()
    return [AggregateFormByUserProfile(id=a.id, data=a.data) for a in aggregates]


@router.get("/{form_id}", response_model=FormDetail)
async def get_form(
    form_id: str,
    _: AuthUser = Depends(require_admin),
    service: FormsService = Depends(get_forms_service),
) -> FormDetail:
    form = await service.find_by_form_id(form_id)
    return FormDetail.model_validate(form)


@router.get("/{form_id}/documents", response_model=list[DocumentDetail])
async def list_form_documents(
    form_id: str,
    _: AuthUser = Depends(require_admin),
    service: FormsService = Depends(get_forms_service),
) -> list[DocumentDetail]:
    documents = await service.list_form_documents(form_id)
    return [DocumentDetail.model_validate(doc) for doc in documents]


@router.get("/{form_id}/documents/{residue_type}/urls", response_model=FormDocumentsUrl)
async def form_documents_url_by_residue(
    form_id: str,
    residue_type: ResidueType,
    _: AuthUser = Depends(require_admin),
    service: FormsService = Depends(get_forms_service),
) -> FormDocumentsUrl:
    """Temporary read URLs for the video and invoices of one residue."""
    result = await service.get_form_documents_url(form_id, residue_type)
    return FormDocumentsUrl(
        residue=result.residue,
        video_file_url=result.video_file_url,
        invoice_file_urls=result.invoice_file_urls,
    )


@router.post("", response_model=CreateFormResponse, status_code=201)
async def create_form(
    data: CreateFormInput,
    user: AuthUser = Depends(get_current_user),
    service: FormsService = Depends(get_forms_service),
) -> CreateFormResponse:
    """
    Submit a form.
    
    When evidence file names are sent, the response carries one upload URL
    per file; the client uploads the files to those URLs directly.
    """
    result = await service.create_form(user.sub, data)
    return CreateFormResponse(
        form=FormDetail.model_validate(result.form),
        s3=[ResidueUpload.model_validate(upload) for upload in result.s3],
    )


@router.patch("/{form_id}/authorization", response_model=FormDetail)
async def authorize_form(
    form_id: str,
    data: AuthorizeFormRequest,
    _: AuthUser = Depends(require_admin),
    service: FormsService = Depends(get_forms_service),
) -> FormDetail:
    form = await service.authorize_form(form_id, data.is_form_authorized)
    return FormDetail.model_validate(form)


@router.post("/{form_id}/image", response_model=FormImageUpload)
async def submit_form_image(
    form_id: str,
    _: AuthUser = Depends(require_admin),
    service: FormsService = Depends(get_forms_service),
) -> FormImageUpload:
    url = await service.submit_form_image(form_id)
    return FormImageUpload(create_image_url=url)


@router.post("/{form_id}/metadata", response_model=FormMetadataUpload)
async def create_form_metadata(
    form_id: str,
    _: AuthUser = Depends(require_admin),
    service: FormsService = Depends(get_forms_service),
) -> FormMetadataUpload:
    """Build the form's NFT metadata; the client uploads `body` to the URL."""
    result = await service.create_form_metadata(form_id)
    return FormMetadataUpload(create_metadata_url=result.create_metadata_url, body=result.body)
