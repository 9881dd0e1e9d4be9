"""
schemas.py - Profile Pydantic v2 data contracts.

Defines:
  - ProfileFields      the eleven organization fields structured extraction can fill
  - FileReference      {fileName, storageKey, storageUrl}, always complete
  - ProfileDraft       in-memory draft: ProfileFields + optional File Reference
  - StoredProfile      persisted row as returned by store.py
  - SwipeProfile       StoredProfile + owner's public {username, name}
  - request bodies     ProfileUpdate, ExtractRequest, FileReferenceRequest

Python attributes are snake_case; the wire format is camelCase
(alias_generator=to_camel). Dump with by_alias=True for responses.
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

FILE_REFERENCE_FIELDS = ("file_name", "storage_key", "storage_url")

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileFields(BaseModel):
    """
    Organization fields. Also the typed shape of one structured extraction:
    every field is present, scalars default to None and arrays to [].
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    organization_name: Optional[str] = None
    ein: Optional[str] = None
    mission_statement: Optional[str] = None
    year_founded: Optional[str] = None
    location_served: Optional[str] = None
    biggest_accomplishment: Optional[str] = None
    one_sentence_summary: Optional[str] = None
    legal_designation: Optional[str] = None
    primary_cause_areas: List[str] = Field(default_factory=list)
    populations: List[str] = Field(default_factory=list)
    geographical_focus: Optional[str] = None


PROFILE_FIELD_NAMES = tuple(ProfileFields.model_fields)


class FileReference(BaseModel):
    model_config = _WIRE

    file_name: str = Field(..., min_length=1)
    storage_key: str = Field(..., min_length=1)
    storage_url: str = Field(..., min_length=1)


class ProfileDraft(ProfileFields):
    """
    The editable draft. A File Reference is all-or-nothing: a draft holding
    one or two of the three file fields is invalid.
    """
    file_name: Optional[str] = None
    storage_key: Optional[str] = None
    storage_url: Optional[str] = None

    @model_validator(mode="after")
    def validate_file_reference_complete(self) -> "ProfileDraft":
        present = [bool(getattr(self, name)) for name in FILE_REFERENCE_FIELDS]
        if any(present) and not all(present):
            raise ValueError("fileName, storageKey, and storageUrl must be set together")
        return self

    @property
    def file_reference(self) -> Optional[FileReference]:
        if not self.file_name:
            return None
        return FileReference(
            file_name=self.file_name,
            storage_key=self.storage_key,
            storage_url=self.storage_url,
        )

    def overlay(self, fields: ProfileFields) -> "ProfileDraft":
        """
        Shallow overlay: every extracted organization field overwrites the
        same-named draft field. The File Reference is never touched.
        """
        return self.model_copy(update=fields.model_dump())

    def with_file_reference(self, reference: Optional[FileReference]) -> "ProfileDraft":
        if reference is None:
            return self.model_copy(update=dict.fromkeys(FILE_REFERENCE_FIELDS))
        return self.model_copy(update=reference.model_dump())


class StoredProfile(ProfileDraft):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    owner_id: str
    created_at: datetime
    updated_at: datetime

    def to_draft(self) -> ProfileDraft:
        return ProfileDraft.model_validate(self.model_dump(include=set(ProfileDraft.model_fields)))


class ProfileOwner(BaseModel):
    """Public part of the owning user, shown on swipe cards."""
    username: str
    name: str


class SwipeProfile(StoredProfile):
    user: ProfileOwner


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class ProfileUpdate(BaseModel):
    """
    Body for POST/PUT /api/profile. Every field optional; unset fields are
    treated per the caller's replace/patch policy in workflow.edit().
    The all-or-nothing File Reference rule is checked on the merged draft.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    organization_name: Optional[str] = None
    ein: Optional[str] = None
    mission_statement: Optional[str] = None
    year_founded: Optional[str] = None
    location_served: Optional[str] = None
    biggest_accomplishment: Optional[str] = None
    one_sentence_summary: Optional[str] = None
    legal_designation: Optional[str] = None
    primary_cause_areas: Optional[List[str]] = None
    populations: Optional[List[str]] = None
    geographical_focus: Optional[str] = None
    file_name: Optional[str] = None
    storage_key: Optional[str] = None
    storage_url: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        """
        Explicitly sent fields only. A null array means 'clear it'; a blank
        string is stored as null, the way an unselected form field arrives.
        """
        data = self.model_dump(exclude_unset=True)
        for name, value in data.items():
            if isinstance(value, str) and not value.strip():
                data[name] = None
        for name in ("primary_cause_areas", "populations"):
            if name in data and data[name] is None:
                data[name] = []
        return data


class ExtractRequest(BaseModel):
    """Body for POST /api/profile/extract: the client-held results of /api/upload."""
    model_config = _WIRE

    extracted_text: Optional[str] = None
    file_name: Optional[str] = None
    storage_key: Optional[str] = None
    storage_url: Optional[str] = None


class FileReferenceRequest(BaseModel):
    """Body for PUT /api/profile/file. Presence of all three is checked by the route."""
    model_config = _WIRE

    file_name: Optional[str] = None
    storage_key: Optional[str] = None
    storage_url: Optional[str] = None


__all__ = [
    "FILE_REFERENCE_FIELDS",
    "PROFILE_FIELD_NAMES",
    "ProfileFields",
    "FileReference",
    "ProfileDraft",
    "StoredProfile",
    "ProfileOwner",
    "SwipeProfile",
    "ProfileUpdate",
    "ExtractRequest",
    "FileReferenceRequest",
]
