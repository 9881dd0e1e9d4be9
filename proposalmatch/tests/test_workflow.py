"""
Profile Reconciliation Workflow tests: state transitions, rollback on failed
extraction, advisory storage failures, and the persistence rules
(idempotent save, merge non-destructiveness, file-reference isolation).
"""
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError

from proposalmatch import store
from proposalmatch.config import settings
from proposalmatch.documents.storage import ObjectStorage
from proposalmatch.errors import DocumentExtractionError, StructuredExtractionError, ValidationError
from proposalmatch.profile.constants import LEGAL_DESIGNATION_OPTIONS
from proposalmatch.profile.schemas import FileReference, ProfileDraft
from proposalmatch.profile.workflow import (
    ProfileWorkflow,
    UploadedDocument,
    WorkflowState,
    validate_enumerations,
    validate_upload,
)

SCENARIO_TEXT = (
    "We are a 501(c)(3) nonprofit founded in 2010 serving veterans in the Pacific Northwest"
)


@pytest_asyncio.fixture
async def owner(db) -> str:
    user = await store.create_user(
        db, username="owner", email="owner@example.org", password_hash="x", name="Owner"
    )
    return user.id


def _txt(text: str, name: str = "proposal.txt") -> UploadedDocument:
    return UploadedDocument(data=text.encode("utf-8"), file_name=name, content_type="text/plain")


# ---------------------------------------------------------------------------
# open()
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_open_without_profile_starts_empty(db, owner) -> None:
    workflow = await ProfileWorkflow.open(db, owner)
    assert workflow.state is WorkflowState.EMPTY
    assert workflow.draft == ProfileDraft()


@pytest.mark.asyncio
async def test_open_with_saved_profile_is_reviewing(db, owner) -> None:
    await store.upsert_profile(db, owner, ProfileDraft(organization_name="Helping Hands"))
    workflow = await ProfileWorkflow.open(db, owner)
    assert workflow.state is WorkflowState.REVIEWING
    assert workflow.draft.organization_name == "Helping Hands"


# ---------------------------------------------------------------------------
# Upload validation
# ---------------------------------------------------------------------------

def test_upload_size_limit_is_inclusive() -> None:
    limit = settings.max_upload_bytes
    assert limit == 10 * 1024 * 1024

    exact = UploadedDocument(data=b"a" * limit, file_name="big.txt")
    assert validate_upload(exact) == "txt"

    over = UploadedDocument(data=b"a" * (limit + 1), file_name="big.txt")
    with pytest.raises(ValidationError) as exc_info:
        validate_upload(over)
    assert exc_info.value.reason == "FILE_TOO_LARGE"
    assert exc_info.value.message == "File size exceeds 10MB limit"


@pytest.mark.parametrize("name", ["notes.rtf", "image.png", "no_extension", "archive.pdf.zip"])
def test_upload_rejects_unsupported_extension(name: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_upload(UploadedDocument(data=b"x", file_name=name))
    assert exc_info.value.reason == "UNSUPPORTED_FILE_TYPE"


# ---------------------------------------------------------------------------
# upload()
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upload_extracts_text_and_stores_file(db, owner, storage, s3_client) -> None:
    workflow = ProfileWorkflow(db, owner, storage=storage)
    outcome = await workflow.upload(_txt(SCENARIO_TEXT))

    assert workflow.state is WorkflowState.TEXT_EXTRACTED
    assert workflow.extracted_text == SCENARIO_TEXT
    assert outcome.storage_configured is True
    assert outcome.storage_key.startswith("proposals/")
    assert outcome.storage_error is None
    s3_client.put_object.assert_called_once()

    body = outcome.to_response()
    assert body["success"] is True
    assert body["fileType"] == "txt"
    assert body["storageKey"] == outcome.storage_key
    assert "storageError" not in body


@pytest.mark.asyncio
async def test_upload_storage_failure_is_a_warning(db, owner, storage, s3_client) -> None:
    s3_client.put_object.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "User arn:aws:iam::123456789012:user/app is not authorized"}},
        "PutObject",
    )
    workflow = ProfileWorkflow(db, owner, storage=storage)
    outcome = await workflow.upload(_txt(SCENARIO_TEXT))

    assert workflow.state is WorkflowState.TEXT_EXTRACTED
    assert outcome.extracted_text == SCENARIO_TEXT
    assert outcome.storage_key is None
    assert outcome.storage_error == "Storage upload failed"
    assert "arn:aws" not in outcome.storage_error
    assert "AccessDenied" not in outcome.storage_error

    body = outcome.to_response()
    assert "storageKey" not in body
    assert body["storageError"] == outcome.storage_error
    assert body["storageConfigured"] is True


@pytest.mark.asyncio
async def test_upload_needs_no_database_session(storage, s3_client) -> None:
    workflow = ProfileWorkflow(None, "owner-id", storage=storage)
    outcome = await workflow.upload(_txt(SCENARIO_TEXT))

    assert workflow.state is WorkflowState.TEXT_EXTRACTED
    assert outcome.storage_key.startswith("proposals/")


@pytest.mark.asyncio
async def test_upload_without_storage_reports_not_configured(db, owner) -> None:
    unconfigured = ObjectStorage(bucket="", region="", access_key_id="", secret_access_key="", client=MagicMock())
    workflow = ProfileWorkflow(db, owner, storage=unconfigured)
    outcome = await workflow.upload(_txt("Some text"))

    assert outcome.storage_configured is False
    assert outcome.storage_error == "Object storage is not configured"
    assert workflow.stored_object is None


@pytest.mark.asyncio
async def test_whitespace_only_upload_reverts_to_empty(db, owner, storage, s3_client) -> None:
    workflow = ProfileWorkflow(db, owner, storage=storage)
    with pytest.raises(DocumentExtractionError) as exc_info:
        await workflow.upload(_txt("   \n\t  \n"))

    assert exc_info.value.reason == DocumentExtractionError.EMPTY_CONTENT
    assert workflow.state is WorkflowState.EMPTY
    assert workflow.extracted_text is None
    s3_client.put_object.assert_not_called()


@pytest.mark.asyncio
async def test_failed_upload_returns_to_last_stable_state(db, owner, storage) -> None:
    await store.upsert_profile(db, owner, ProfileDraft(organization_name="Helping Hands"))
    workflow = await ProfileWorkflow.open(db, owner, storage=storage)

    with pytest.raises(DocumentExtractionError):
        await workflow.upload(UploadedDocument(data=b"not a pdf", file_name="broken.pdf"))

    assert workflow.state is WorkflowState.REVIEWING
    assert workflow.draft.organization_name == "Helping Hands"


# ---------------------------------------------------------------------------
# File reference
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_save_file_reference_requires_stored_file(db, owner) -> None:
    workflow = ProfileWorkflow(db, owner, storage=None)
    await workflow.upload(_txt("Some text"))

    with pytest.raises(ValidationError) as exc_info:
        await workflow.save_file_reference()
    assert exc_info.value.reason == "STORAGE_REQUIRED"
    assert await store.get_profile_by_owner(db, owner) is None


@pytest.mark.asyncio
async def test_save_file_reference_after_upload(db, owner, storage) -> None:
    workflow = ProfileWorkflow(db, owner, storage=storage)
    outcome = await workflow.upload(_txt("Some text", name="Grant.txt"))

    saved = await workflow.save_file_reference()

    assert workflow.state is WorkflowState.FILE_SAVED
    assert saved.file_name == "Grant.txt"
    assert saved.storage_key == outcome.storage_key
    assert saved.storage_url == outcome.storage_url
    assert saved.organization_name is None
    assert saved.primary_cause_areas == []
    assert workflow.draft.file_reference == FileReference(
        file_name="Grant.txt", storage_key=outcome.storage_key, storage_url=outcome.storage_url
    )


@pytest.mark.asyncio
async def test_file_reference_update_never_touches_organization_fields(db, owner) -> None:
    draft = ProfileDraft(
        organization_name="Helping Hands",
        mission_statement="End hunger",
        legal_designation=LEGAL_DESIGNATION_OPTIONS[0],
        primary_cause_areas=["Education"],
    )
    before = await store.upsert_profile(db, owner, draft)

    workflow = await ProfileWorkflow.open(db, owner)
    after = await workflow.save_file_reference(
        FileReference(file_name="a.pdf", storage_key="proposals/1_a.pdf", storage_url="https://x/a.pdf")
    )

    assert after.id == before.id
    assert after.organization_name == "Helping Hands"
    assert after.mission_statement == "End hunger"
    assert after.legal_designation == LEGAL_DESIGNATION_OPTIONS[0]
    assert after.primary_cause_areas == ["Education"]
    assert after.storage_key == "proposals/1_a.pdf"


@pytest.mark.asyncio
async def test_profile_save_keeps_saved_file_reference(db, owner) -> None:
    await store.update_file_reference(
        db, owner, FileReference(file_name="a.pdf", storage_key="k", storage_url="https://x/a.pdf")
    )
    workflow = await ProfileWorkflow.open(db, owner)
    workflow.edit({"organization_name": "Helping Hands"}, replace=True)
    saved = await workflow.save()

    assert saved.organization_name == "Helping Hands"
    assert saved.file_name == "a.pdf"
    assert saved.storage_key == "k"


# ---------------------------------------------------------------------------
# Structured extraction
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_extract_fields_overlays_draft_without_writing(db, owner, extraction_client, llm_returns) -> None:
    llm_returns({"organizationName": "Helping Hands", "missionStatement": "Feed people"})
    workflow = ProfileWorkflow(db, owner, extractor=extraction_client)
    workflow.attach_text("Helping Hands feeds people.")

    fields = await workflow.extract_fields()

    assert workflow.state is WorkflowState.FIELDS_EXTRACTED
    assert fields.organization_name == "Helping Hands"
    assert workflow.draft.mission_statement == "Feed people"
    assert await store.get_profile_by_owner(db, owner) is None


@pytest.mark.asyncio
async def test_extraction_merge_preserves_file_reference(db, owner, extraction_client, llm_returns) -> None:
    await store.update_file_reference(
        db, owner, FileReference(file_name="a.pdf", storage_key="k", storage_url="https://x/a.pdf")
    )
    llm_returns({"organizationName": "Helping Hands"})
    workflow = await ProfileWorkflow.open(db, owner, extractor=extraction_client)
    workflow.attach_text("Helping Hands")

    await workflow.extract_fields()

    assert workflow.draft.organization_name == "Helping Hands"
    assert workflow.draft.file_name == "a.pdf"
    assert workflow.draft.storage_key == "k"
    assert workflow.draft.storage_url == "https://x/a.pdf"


@pytest.mark.asyncio
async def test_failed_extraction_keeps_state_and_draft(db, owner, extraction_client, llm_returns) -> None:
    llm_returns("this is not json")
    workflow = ProfileWorkflow(db, owner, extractor=extraction_client)
    workflow.attach_text("Some text")
    workflow.edit({"organization_name": "Typed by hand"})

    with pytest.raises(StructuredExtractionError):
        await workflow.extract_fields()

    assert workflow.state is WorkflowState.REVIEWING
    assert workflow.draft.organization_name == "Typed by hand"


@pytest.mark.asyncio
async def test_attach_text_requires_text(db, owner) -> None:
    workflow = ProfileWorkflow(db, owner)
    with pytest.raises(ValidationError) as exc_info:
        workflow.attach_text("  ")
    assert exc_info.value.reason == "MISSING_TEXT"
    assert workflow.state is WorkflowState.EMPTY


@pytest.mark.asyncio
async def test_enumeration_scenario(db, owner, storage, extraction_client, llm_returns) -> None:
    # Model answers with a hyphen where the allowed literal has an en dash
    llm_returns(
        {
            "yearFounded": 2010,
            "legalDesignation": "501(c)(3) - Public Charity",
            "populations": ["Veterans & Military Families"],
            "locationServed": "Pacific Northwest",
            "geographicalFocus": "Regional",
        }
    )
    workflow = ProfileWorkflow(db, owner, storage=storage, extractor=extraction_client)
    await workflow.upload(_txt(SCENARIO_TEXT))

    fields = await workflow.extract_fields()

    assert fields.legal_designation in LEGAL_DESIGNATION_OPTIONS
    assert fields.legal_designation == "501(c)(3) – Public Charity"
    assert fields.year_founded == "2010"

    workflow.edit({"organization_name": "Northwest Veterans Alliance"})
    saved = await workflow.save()
    assert saved.legal_designation == "501(c)(3) – Public Charity"
    assert saved.populations == ["Veterans & Military Families"]


# ---------------------------------------------------------------------------
# Edit / save
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_manual_entry_goes_straight_to_reviewing(db, owner) -> None:
    workflow = await ProfileWorkflow.open(db, owner)
    workflow.edit({"organization_name": "Helping Hands"})
    assert workflow.state is WorkflowState.REVIEWING

    saved = await workflow.save()
    assert workflow.state is WorkflowState.SAVED
    assert saved.owner_id == owner


@pytest.mark.asyncio
async def test_save_twice_leaves_one_identical_row(db, owner) -> None:
    workflow = await ProfileWorkflow.open(db, owner)
    workflow.edit({"organization_name": "Helping Hands", "populations": ["Families"]})

    first = await workflow.save()
    second = await workflow.save()

    assert first.id == second.id
    assert first.model_dump(exclude={"updated_at"}) == second.model_dump(exclude={"updated_at"})
    reopened = await ProfileWorkflow.open(db, owner)
    assert reopened.draft == second.to_draft()


@pytest.mark.asyncio
async def test_edit_replace_clears_unsent_fields(db, owner) -> None:
    await store.upsert_profile(
        db, owner, ProfileDraft(organization_name="Old", mission_statement="Old mission")
    )
    workflow = await ProfileWorkflow.open(db, owner)
    workflow.edit({"organization_name": "New"}, replace=True)
    saved = await workflow.save()

    assert saved.organization_name == "New"
    assert saved.mission_statement is None


@pytest.mark.asyncio
async def test_edit_rejects_partial_file_reference(db, owner) -> None:
    workflow = ProfileWorkflow(db, owner)
    with pytest.raises(ValidationError) as exc_info:
        workflow.edit({"file_name": "a.pdf"})
    assert exc_info.value.reason == "INVALID_FIELDS"
    assert workflow.state is WorkflowState.EMPTY


@pytest.mark.asyncio
async def test_save_rejects_values_outside_enumerations(db, owner) -> None:
    workflow = ProfileWorkflow(db, owner)
    workflow.edit(
        {
            "organization_name": "Helping Hands",
            "legal_designation": "501(c)(3) - Public Charity",
            "populations": ["Families", "Martians"],
        }
    )
    with pytest.raises(ValidationError) as exc_info:
        await workflow.save()

    assert exc_info.value.reason == "INVALID_ENUMERATION"
    assert {d["field"] for d in exc_info.value.details} == {"legalDesignation", "populations"}
    assert await store.get_profile_by_owner(db, owner) is None


def test_validate_enumerations_allows_empty_values() -> None:
    validate_enumerations(ProfileDraft())
    validate_enumerations(ProfileDraft(legal_designation="", geographical_focus=None))
