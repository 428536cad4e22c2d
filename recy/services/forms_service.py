"""
Forms Service.

Coordinates form submission, evidence upload URLs, admin authorization,
per-profile reporting and NFT metadata publication on top of the
repositories and the storage gateway.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Optional, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recy.api.schemas.forms import CreateFormInput, ResidueInput
from recy.config import Settings, get_settings
from recy.errors import ForbiddenError, NotFoundError, PersistenceError, RecyError
from recy.infra.db.models.document import Document
from recy.infra.db.models.form import Form
from recy.infra.db.models.user import ProfileType
from recy.infra.db.repositories import DocumentRepository, FormRepository
from recy.infra.storage.gateway import PreSignedObjectUrl, StorageGateway
from recy.messages import Message
from recy.services.residue import (
    RESIDUE_CATEGORIES,
    ResidueCategory,
    ResidueType,
    get_residue_title,
)
from recy.services.users_service import UsersService

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Profile types reported by aggregate_by_user_profile, in response order
REPORTED_PROFILE_TYPES = (ProfileType.RECYCLER, ProfileType.WASTE_GENERATOR)

METADATA_DESCRIPTION = "RECY Report"
IMAGES_PATH = "images"
METADATA_PATH = "metadata"


@dataclass
class ResidueUploadResult:
    """Upload URLs issued for one residue category of a new form."""
    residue: ResidueType
    invoices_create_url: list[str] = field(default_factory=list)
    invoices_file_name: list[str] = field(default_factory=list)
    video_create_url: str = ""
    video_file_name: Optional[str] = None


@dataclass
class CreateFormResult:
    form: Form
    s3: list[ResidueUploadResult] = field(default_factory=list)


@dataclass
class ProfileAggregate:
    id: ProfileType
    data: float


@dataclass
class FormDocumentsUrlResult:
    residue: ResidueType
    video_file_url: Optional[str] = None
    invoice_file_urls: list[str] = field(default_factory=list)


@dataclass
class FormMetadataResult:
    create_metadata_url: str
    body: str


async def gather_or_cancel(*calls: Awaitable[T]) -> list[T]:
    """Run calls concurrently; on the first failure cancel the rest.

    Cancelled calls are awaited before the error propagates, so none of
    them outlives the operation that started it.
    """
    tasks = [asyncio.ensure_future(call) for call in calls]
    try:
        return list(await asyncio.gather(*tasks))
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


def should_create_document(residue: ResidueInput) -> bool:
    """A category becomes a Document when it declares an amount or evidence."""
    return residue.amount > 0 or residue.has_evidence


class FormsService:
    """Business operations on forms.

    Repository writes only flush; this service decides when the session
    is committed, so each mutating operation is a single transaction.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage: StorageGateway,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.storage = storage
        self.settings = settings or get_settings()
        self.forms = FormRepository(session)
        self.documents = DocumentRepository(session)
        self.users = UsersService(session)

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncIterator[None]:
        """Commit on success, roll back everything on any failure."""
        try:
            yield
            await self.session.commit()
        except RecyError:
            logger.warning(f"{operation} failed, rolling back")
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed with a database error, rolling back: {e}")
            await self.session.rollback()
            raise PersistenceError(detail=operation) from e
        except Exception:
            logger.warning(f"{operation} failed unexpectedly, rolling back")
            await self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_by_form_id(self, form_id: str) -> Form:
        form = await self.forms.get_by_id(form_id)
        if form is None:
            raise NotFoundError(Message.FORM_NOT_FOUND)
        return form

    async def list_all_forms(self) -> Sequence[Form]:
        return await self.forms.get_all()

    async def list_forms_for_user(self, user_id: str) -> Sequence[Form]:
        return await self.forms.get_by_user(user_id)

    async def list_form_documents(self, form_id: str) -> Sequence[Document]:
        form = await self.find_by_form_id(form_id)
        return await self.documents.list_for_form(form.id)

    async def aggregate_by_user_profile(self) -> list[ProfileAggregate]:
        """Total declared kilograms per eligible profile type.

        Only Document amounts are summed; Form quantity columns are ignored.
        Sums run sequentially on the request session.
        """
        aggregates = []
        for profile_type in REPORTED_PROFILE_TYPES:
            total = await self.documents.sum_amount_by_profile_type(profile_type.value)
            aggregates.append(ProfileAggregate(id=profile_type, data=total))
        return aggregates

    async def get_form_documents_url(
        self, form_id: str, residue_type: ResidueType
    ) -> FormDocumentsUrlResult:
        """Time-limited read URLs for the evidence of one residue category."""
        form = await self.find_by_form_id(form_id)
        document = await self.documents.get_for_form_and_residue(form.id, residue_type.value)
        if document is None:
            raise NotFoundError(Message.FORM_DOES_NOT_HAVE_DOCUMENT, residue_type.value)

        invoice_names = list(document.invoices_file_name or [])
        video_task = (
            self.storage.create_signed_read_url(document.video_file_name)
            if document.video_file_name
            else None
        )
        invoice_tasks = [self.storage.create_signed_read_url(name) for name in invoice_names]

        if video_task is not None:
            video_url, *invoice_urls = await gather_or_cancel(video_task, *invoice_tasks)
        else:
            video_url = None
            invoice_urls = await gather_or_cancel(*invoice_tasks)

        return FormDocumentsUrlResult(
            residue=residue_type,
            video_file_url=video_url,
            invoice_file_urls=list(invoice_urls),
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def create_form(self, auth_user_id: str, data: CreateFormInput) -> CreateFormResult:
        """Create a form, its documents, and the evidence upload URLs.

        Permission is checked before anything is written. The form and all
        of its documents are committed together, or not at all.
        """
        user = await self.users.find_user_by_auth_user_id(auth_user_id)

        has_evidence = any(data.residue(category).has_evidence for category in RESIDUE_CATEGORIES)
        if has_evidence and not user.can_upload_evidence:
            logger.warning(
                f"User {user.id} ({user.profile_type}) attempted to upload evidence"
            )
            raise ForbiddenError(Message.USER_DOES_NOT_HAS_PERMISSION_TO_UPLOAD)

        uploads: list[ResidueUploadResult] = []
        async with self._unit_of_work("create_form"):
            form = await self.forms.create(
                user_id=user.id,
                wallet_address=data.wallet_address,
                **{
                    category.quantity_column: data.residue(category).amount
                    for category in RESIDUE_CATEGORIES
                },
            )
            logger.info(f"Created form {form.id} for user {user.id} (evidence={has_evidence})")

            for category in RESIDUE_CATEGORIES:
                residue = data.residue(category)
                if not should_create_document(residue):
                    continue
                upload = await self._create_residue_document(form, category, residue)
                if has_evidence:
                    uploads.append(upload)

        return CreateFormResult(form=form, s3=uploads)

    async def _create_residue_document(
        self, form: Form, category: ResidueCategory, residue: ResidueInput
    ) -> ResidueUploadResult:
        """Issue upload URLs for one category, then write its Document."""
        residue_type = category.residue_type.value

        video_request = (
            self.storage.create_pre_signed_object_url(residue.video_file_name, residue_type)
            if residue.video_file_name
            else None
        )
        invoice_requests = [
            self.storage.create_pre_signed_object_url(name, residue_type)
            for name in residue.invoices_file_name
        ]

        video: Optional[PreSignedObjectUrl] = None
        if video_request is not None:
            video, *invoices = await gather_or_cancel(video_request, *invoice_requests)
        else:
            invoices = await gather_or_cancel(*invoice_requests)

        document = await self.documents.create(
            form_id=form.id,
            residue_type=residue_type,
            amount=residue.amount,
            video_file_name=video.file_name if video else None,
            invoices_file_name=[invoice.file_name for invoice in invoices],
        )
        logger.debug(
            f"Form {form.id}: {residue_type} document {document.id} "
            f"(video={video is not None}, invoices={len(invoices)})"
        )

        return ResidueUploadResult(
            residue=category.residue_type,
            invoices_create_url=[invoice.create_url for invoice in invoices],
            invoices_file_name=list(document.invoices_file_name),
            video_create_url=video.create_url if video else "",
            video_file_name=document.video_file_name,
        )

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    async def authorize_form(self, form_id: str, is_form_authorized: bool) -> Form:
        # TODO: restrict authorization to forms submitted by RECYCLER users once
        # the approval rules for WASTE_GENERATOR forms are agreed on.
        form = await self.find_by_form_id(form_id)

        async with self._unit_of_work("authorize_form"):
            form = await self.forms.set_authorization(form.id, is_form_authorized)

        logger.info(f"Form {form_id} authorization set to {is_form_authorized}")
        return form

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    async def create_on_public_object(self, file_name: str, base_path: str) -> str:
        created = await self.storage.create_pre_signed_object_url(
            file_name,
            "",
            base_path=base_path,
            bucket=self.settings.public_bucket,
        )
        return created.create_url

    async def submit_form_image(self, form_id: str) -> str:
        form = await self.find_by_form_id(form_id)
        return await self.create_on_public_object(f"{form.id}.png", IMAGES_PATH)

    def _build_attributes(self, form: Form, documents: Sequence[Document]) -> list[dict[str, str]]:
        attributes = [
            {
                "trait_type": "Originating wallet",
                "value": form.wallet_address or "0x0",
            },
            {
                "trait_type": "Audit",
                "value": "Verified" if form.is_form_authorized_by_admin else "Not Verified",
            },
        ]
        for document in documents:
            attributes.append({
                "trait_type": f"{get_residue_title(document.residue_type)} kgs",
                "value": str(document.amount),
            })
        return attributes

    async def create_form_metadata(self, form_id: str) -> FormMetadataResult:
        """Build the NFT metadata JSON of a form and reserve its public URL.

        The public metadata URL is stored on the form every time, so calling
        this again simply overwrites it.
        """
        form = await self.find_by_form_id(form_id)
        user = await self.users.find_user_by_user_id(form.user_id)
        documents = await self.documents.list_for_form(form.id)

        attributes = self._build_attributes(form, documents)

        public_bucket = self.settings.public_bucket
        metadata_key = f"{METADATA_PATH}/{form.id}.json"
        create_metadata_url = await self.create_on_public_object(f"{form.id}.json", METADATA_PATH)

        json_metadata: dict[str, Any] = {
            "attributes": attributes,
            "description": METADATA_DESCRIPTION,
            "image": self.storage.public_object_url(f"{IMAGES_PATH}/{form.id}.png", public_bucket),
            "name": user.email,
        }
        form_metadata_url = self.storage.public_object_url(metadata_key, public_bucket)

        async with self._unit_of_work("create_form_metadata"):
            await self.forms.set_metadata_url(form.id, form_metadata_url)

        logger.info(f"Published metadata for form {form.id} with {len(documents)} documents")
        return FormMetadataResult(
            create_metadata_url=create_metadata_url,
            body=json.dumps(json_metadata, indent=2),
        )
