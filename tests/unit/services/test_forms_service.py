"""
Tests for FormsService: submission workflow, authorization, reporting
and metadata publication.
"""
import asyncio
import json

import pytest
from pydantic import ValidationError

from recy.api.schemas.forms import CreateFormInput, ResidueInput
from recy.errors import ForbiddenError, NotFoundError, StorageError
from recy.infra.db.models.user import ProfileType
from recy.infra.db.repositories import DocumentRepository, FormRepository
from recy.messages import Message
from recy.services.forms_service import FormsService, gather_or_cancel, should_create_document
from recy.services.residue import ResidueType

from tests.conftest import FakeStorageGateway, make_user


def _service(session, storage, settings) -> FormsService:
    return FormsService(session, storage, settings)


async def _counts(session) -> tuple[int, int]:
    return await FormRepository(session).count(), await DocumentRepository(session).count()


class TestShouldCreateDocument:
    
    def test_zero_amount_without_evidence_is_skipped(self):
        assert should_create_document(ResidueInput(amount=0)) is False
    
    def test_positive_amount_creates_document(self):
        assert should_create_document(ResidueInput(amount=0.5)) is True
    
    def test_evidence_without_amount_creates_document(self):
        assert should_create_document(ResidueInput(amount=0, invoices_file_name=["a.pdf"])) is True


class TestResidueInput:
    
    def test_blank_names_are_dropped_before_checking(self):
        residue = ResidueInput(amount=1, video_file_name="  ", invoices_file_name=["", "scan.pdf"])
        assert residue.video_file_name is None
        assert residue.invoices_file_name == ["scan.pdf"]
    
    @pytest.mark.parametrize("field, value", [
        ("video_file_name", "clip.exe"),
        ("invoices_file_name", ["scan.pdf", "notes.txt"]),
        ("invoices_file_name", ["..."]),
    ])
    def test_unstorable_names_are_rejected(self, field, value):
        with pytest.raises(ValidationError):
            ResidueInput(amount=1, **{field: value})


class TestCreateForm:
    """Tests for the submission workflow."""
    
    @pytest.mark.asyncio
    async def test_quantity_only_submission_makes_no_storage_calls(self, session, storage, settings, partner):
        service = _service(session, storage, settings)
        data = CreateFormInput(
            wallet_address="0xabc",
            glass=ResidueInput(amount=3),
            paper=ResidueInput(amount=1.5),
        )
        
        result = await service.create_form("auth|partner", data)
        
        assert result.s3 == []
        assert storage.upload_calls == []
        assert result.form.wallet_address == "0xabc"
        assert result.form.glass_kgs == 3
        assert result.form.paper_kgs == 1.5
        assert result.form.metal_kgs == 0
        
        documents = await DocumentRepository(session).list_for_form(result.form.id)
        assert sorted(d.residue_type for d in documents) == ["GLASS", "PAPER"]
    
    @pytest.mark.asyncio
    async def test_single_plastic_invoice(self, session, storage, settings, recycler):
        service = _service(session, storage, settings)
        data = CreateFormInput(plastic=ResidueInput(amount=10, invoices_file_name=["invoice1.pdf"]))
        
        result = await service.create_form("auth|recycler", data)
        
        assert len(result.s3) == 1
        upload = result.s3[0]
        assert upload.residue == ResidueType.PLASTIC
        assert len(upload.invoices_create_url) == 1
        assert upload.video_create_url == ""
        assert upload.video_file_name is None
        
        documents = await DocumentRepository(session).list_for_form(result.form.id)
        assert len(documents) == 1
        document = documents[0]
        assert document.residue_type == "PLASTIC"
        assert document.amount == 10
        assert len(document.invoices_file_name) == 1
        assert document.invoices_file_name[0] != "invoice1.pdf"
        assert document.invoices_file_name[0].startswith("plastic/")
        assert upload.invoices_file_name == document.invoices_file_name
    
    @pytest.mark.asyncio
    async def test_video_and_invoices_for_one_category(self, session, storage, settings, waste_generator):
        service = _service(session, storage, settings)
        data = CreateFormInput(
            metal=ResidueInput(amount=4, video_file_name="scale.mp4", invoices_file_name=["a.pdf", "b.pdf"]),
        )
        
        result = await service.create_form("auth|generator", data)
        
        [upload] = result.s3
        assert upload.residue == ResidueType.METAL
        assert upload.video_create_url.startswith("https://storage.test/")
        assert upload.video_file_name.startswith("metal/")
        assert upload.video_file_name.endswith("scale.mp4")
        assert len(upload.invoices_create_url) == 2
        assert {call["category"] for call in storage.upload_calls} == {"METAL"}
        assert len(storage.upload_calls) == 3
    
    @pytest.mark.asyncio
    async def test_invoice_url_order_matches_input_order(self, session, settings, recycler):
        # Earlier invoices finish last, so completion order is the reverse of input order
        names = ["first.pdf", "second.pdf", "third.pdf", "fourth.pdf"]
        storage = FakeStorageGateway(delays={name: 0.01 * (len(names) - i) for i, name in enumerate(names)})
        service = _service(session, storage, settings)
        
        result = await service.create_form(
            "auth|recycler",
            CreateFormInput(organic=ResidueInput(amount=2, invoices_file_name=names)),
        )
        
        [upload] = result.s3
        assert [key.rsplit("-", 1)[1] for key in upload.invoices_file_name] == names
        for url, key in zip(upload.invoices_create_url, upload.invoices_file_name):
            assert key in url
    
    @pytest.mark.asyncio
    async def test_categories_follow_fixed_order(self, session, storage, settings, recycler):
        service = _service(session, storage, settings)
        data = CreateFormInput(
            plastic=ResidueInput(amount=1, invoices_file_name=["p.pdf"]),
            glass=ResidueInput(amount=1, invoices_file_name=["g.pdf"]),
            paper=ResidueInput(amount=1),
        )
        
        result = await service.create_form("auth|recycler", data)
        
        assert [u.residue for u in result.s3] == [ResidueType.GLASS, ResidueType.PAPER, ResidueType.PLASTIC]
        assert result.s3[1].invoices_create_url == []
    
    @pytest.mark.asyncio
    async def test_zero_amount_category_without_evidence_creates_no_document(self, session, storage, settings, recycler):
        service = _service(session, storage, settings)
        data = CreateFormInput(
            glass=ResidueInput(amount=0),
            metal=ResidueInput(amount=0, video_file_name="m.mp4"),
        )
        
        result = await service.create_form("auth|recycler", data)
        
        documents = await DocumentRepository(session).list_for_form(result.form.id)
        assert [d.residue_type for d in documents] == ["METAL"]
        assert [u.residue for u in result.s3] == [ResidueType.METAL]
    
    @pytest.mark.asyncio
    async def test_ineligible_profile_with_evidence_is_forbidden(self, session, storage, settings, partner):
        service = _service(session, storage, settings)
        data = CreateFormInput(glass=ResidueInput(amount=1, video_file_name="clip.mp4"))
        
        with pytest.raises(ForbiddenError):
            await service.create_form("auth|partner", data)
        
        assert await _counts(session) == (0, 0)
        assert storage.upload_calls == []
    
    @pytest.mark.asyncio
    async def test_unknown_user_is_not_found(self, session, storage, settings):
        service = _service(session, storage, settings)
        
        with pytest.raises(NotFoundError):
            await service.create_form("auth|nobody", CreateFormInput(glass=ResidueInput(amount=1)))
        
        assert await _counts(session) == (0, 0)
    
    @pytest.mark.asyncio
    async def test_storage_failure_rolls_back_form_and_documents(self, session, settings, recycler):
        storage = FakeStorageGateway(fail_on={"broken.pdf"})
        service = _service(session, storage, settings)
        data = CreateFormInput(
            glass=ResidueInput(amount=2, invoices_file_name=["ok.pdf"]),
            paper=ResidueInput(amount=1, invoices_file_name=["broken.pdf"]),
        )
        
        with pytest.raises(StorageError):
            await service.create_form("auth|recycler", data)
        
        assert await _counts(session) == (0, 0)
        # GLASS was dispatched before PAPER failed
        assert [call["category"] for call in storage.upload_calls] == ["GLASS", "PAPER"]
    
    @pytest.mark.asyncio
    async def test_failed_upload_cancels_slower_calls(self, session, settings, recycler):
        storage = FakeStorageGateway(fail_on={"broken.pdf"}, delays={"slow.pdf": 5, "clip.mp4": 5})
        service = _service(session, storage, settings)
        data = CreateFormInput(
            metal=ResidueInput(amount=1, video_file_name="clip.mp4", invoices_file_name=["slow.pdf", "broken.pdf"]),
        )
        
        with pytest.raises(StorageError):
            await asyncio.wait_for(service.create_form("auth|recycler", data), timeout=1)
        
        assert sorted(storage.cancelled) == ["clip.mp4", "slow.pdf"]
        assert await _counts(session) == (0, 0)
    
    @pytest.mark.asyncio
    async def test_unsupported_evidence_name_is_rejected_before_any_write(self, session, storage, settings, recycler):
        with pytest.raises(ValidationError):
            CreateFormInput(
                glass=ResidueInput(amount=1, invoices_file_name=["ok.pdf"]),
                paper=ResidueInput(amount=1, invoices_file_name=["payload.exe"]),
            )
        
        assert storage.upload_calls == []
        assert await _counts(session) == (0, 0)


class TestGatherOrCancel:
    
    @pytest.mark.asyncio
    async def test_results_follow_call_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v
        
        assert await gather_or_cancel(value("a", 0.02), value("b", 0), value("c", 0.01)) == ["a", "b", "c"]
    
    @pytest.mark.asyncio
    async def test_no_calls(self):
        assert await gather_or_cancel() == []
    
    @pytest.mark.asyncio
    async def test_first_failure_cancels_the_rest(self):
        cancelled = []
        
        async def slow(name):
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.append(name)
                raise
        
        async def fail():
            raise StorageError(Message.STORAGE_UNAVAILABLE)
        
        with pytest.raises(StorageError):
            await gather_or_cancel(slow("one"), fail(), slow("two"))
        
        assert sorted(cancelled) == ["one", "two"]


class TestAuthorizeForm:
    
    @pytest.mark.asyncio
    async def test_toggle_back_and_forth_leaves_documents_untouched(self, session, storage, settings, recycler):
        service = _service(session, storage, settings)
        created = await service.create_form(
            "auth|recycler",
            CreateFormInput(glass=ResidueInput(amount=5, invoices_file_name=["g.pdf"])),
        )
        form_id = created.form.id
        before = [(d.id, d.amount, list(d.invoices_file_name)) for d in await service.list_form_documents(form_id)]
        
        form = await service.authorize_form(form_id, True)
        assert form.is_form_authorized_by_admin is True
        
        form = await service.authorize_form(form_id, False)
        assert form.is_form_authorized_by_admin is False
        
        reloaded = await service.find_by_form_id(form_id)
        assert reloaded.is_form_authorized_by_admin is False
        after = [(d.id, d.amount, list(d.invoices_file_name)) for d in await service.list_form_documents(form_id)]
        assert after == before
    
    @pytest.mark.asyncio
    async def test_unknown_form(self, session, storage, settings):
        with pytest.raises(NotFoundError):
            await _service(session, storage, settings).authorize_form("missing", True)


class TestAggregateByUserProfile:
    
    @pytest.mark.asyncio
    async def test_sums_document_amounts_per_profile(self, session, storage, settings, recycler, waste_generator):
        service = _service(session, storage, settings)
        await service.create_form("auth|recycler", CreateFormInput(glass=ResidueInput(amount=5), metal=ResidueInput(amount=2.5)))
        await service.create_form("auth|recycler", CreateFormInput(plastic=ResidueInput(amount=5)))
        await service.create_form("auth|generator", CreateFormInput(paper=ResidueInput(amount=7)))
        
        aggregates = await service.aggregate_by_user_profile()
        
        assert [(a.id, a.data) for a in aggregates] == [
            (ProfileType.RECYCLER, 12.5),
            (ProfileType.WASTE_GENERATOR, 7.0),
        ]
    
    @pytest.mark.asyncio
    async def test_profiles_without_forms_report_zero(self, session, storage, settings, recycler):
        service = _service(session, storage, settings)
        await service.create_form("auth|recycler", CreateFormInput(glass=ResidueInput(amount=1)))
        
        aggregates = {a.id: a.data for a in await service.aggregate_by_user_profile()}
        
        assert aggregates[ProfileType.WASTE_GENERATOR] == 0.0
        assert aggregates[ProfileType.RECYCLER] == 1.0
    
    @pytest.mark.asyncio
    async def test_partner_documents_are_not_reported(self, session, storage, settings, partner):
        service = _service(session, storage, settings)
        await service.create_form("auth|partner", CreateFormInput(glass=ResidueInput(amount=9)))
        
        aggregates = await service.aggregate_by_user_profile()
        
        assert all(a.data == 0.0 for a in aggregates)


class TestFormDocumentsUrl:
    
    @pytest.mark.asyncio
    async def test_returns_read_urls_for_video_and_invoices(self, session, storage, settings, recycler):
        service = _service(session, storage, settings)
        created = await service.create_form(
            "auth|recycler",
            CreateFormInput(glass=ResidueInput(amount=1, video_file_name="v.mp4", invoices_file_name=["a.pdf", "b.pdf"])),
        )
        [upload] = created.s3
        
        result = await service.get_form_documents_url(created.form.id, ResidueType.GLASS)
        
        assert result.video_file_url.endswith(f"{upload.video_file_name}?token=read")
        assert len(result.invoice_file_urls) == 2
        assert storage.read_calls == [upload.video_file_name, *upload.invoices_file_name]
    
    @pytest.mark.asyncio
    async def test_missing_residue_document(self, session, storage, settings, recycler):
        service = _service(session, storage, settings)
        created = await service.create_form("auth|recycler", CreateFormInput(glass=ResidueInput(amount=1)))
        
        with pytest.raises(NotFoundError) as exc_info:
            await service.get_form_documents_url(created.form.id, ResidueType.PAPER)
        
        assert exc_info.value.message.name == "FORM_DOES_NOT_HAVE_DOCUMENT"


class TestPublication:
    
    @pytest.mark.asyncio
    async def test_submit_form_image_uses_public_bucket(self, session, storage, settings, recycler):
        service = _service(session, storage, settings)
        created = await service.create_form("auth|recycler", CreateFormInput(glass=ResidueInput(amount=1)))
        
        url = await service.submit_form_image(created.form.id)
        
        assert f"detrash-public/images/{created.form.id}.png" in url
        assert storage.upload_calls[-1] == {
            "file_name": f"{created.form.id}.png",
            "category": "",
            "base_path": "images",
            "bucket": "detrash-public",
        }
    
    @pytest.mark.asyncio
    async def test_create_form_metadata(self, session, storage, settings):
        await make_user(session, "auth|meta", ProfileType.RECYCLER, email="meta@recy.test")
        service = _service(session, storage, settings)
        created = await service.create_form(
            "auth|meta",
            CreateFormInput(
                wallet_address="0xwallet",
                glass=ResidueInput(amount=2),
                plastic=ResidueInput(amount=3.5),
            ),
        )
        form_id = created.form.id
        await service.authorize_form(form_id, True)
        
        result = await service.create_form_metadata(form_id)
        
        body = json.loads(result.body)
        assert result.body == json.dumps(body, indent=2)
        assert len(body["attributes"]) == 2 + 2
        assert body["attributes"][0] == {"trait_type": "Originating wallet", "value": "0xwallet"}
        assert body["attributes"][1] == {"trait_type": "Audit", "value": "Verified"}
        assert sorted(a["trait_type"] for a in body["attributes"][2:]) == ["Glass kgs", "Plastic kgs"]
        assert {"trait_type": "Plastic kgs", "value": "3.5"} in body["attributes"]
        assert body["description"] == "RECY Report"
        assert body["image"] == f"https://storage.test/object/public/detrash-public/images/{form_id}.png"
        assert body["name"] == "meta@recy.test"
        assert f"metadata/{form_id}.json" in result.create_metadata_url
        
        form = await service.find_by_form_id(form_id)
        assert form.form_metadata_url == f"https://storage.test/object/public/detrash-public/metadata/{form_id}.json"
    
    @pytest.mark.asyncio
    async def test_create_form_metadata_is_idempotent(self, session, storage, settings, partner):
        service = _service(session, storage, settings)
        created = await service.create_form("auth|partner", CreateFormInput(metal=ResidueInput(amount=1)))
        form_id = created.form.id
        
        first = await service.create_form_metadata(form_id)
        second = await service.create_form_metadata(form_id)
        
        assert first.create_metadata_url != second.create_metadata_url
        body = json.loads(second.body)
        assert len(body["attributes"]) == 3
        assert body["attributes"][0]["value"] == "0x0"
        assert body["attributes"][1]["value"] == "Not Verified"
        form = await service.find_by_form_id(form_id)
        assert form.form_metadata_url.endswith(f"metadata/{form_id}.json")
    
    @pytest.mark.asyncio
    async def test_metadata_for_unknown_form(self, session, storage, settings):
        with pytest.raises(NotFoundError):
            await _service(session, storage, settings).create_form_metadata("missing")
