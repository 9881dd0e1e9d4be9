"""
schemas.py - Resume parser data contracts and extraction field set.

Same camelCase wire format as the profile flow. Extraction never persists:
ResumeFields comes back from /api/resumes/extract and is saved only when the
client posts it to /api/resumes.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from proposalmatch.extraction.fields import FieldSet, FieldSpec

MANUAL_FILE_NAME = "manual_entry"
MANUAL_FILE_TYPE = "manual"

RESUME_FIELD_SET = FieldSet(
    role="a resume parser",
    source="resume text",
    fields=(
        FieldSpec("fullName", "The person's full name"),
        FieldSpec("email", "Email address"),
        FieldSpec("phone", "Phone number"),
        FieldSpec("lastJob", "Most recent job title"),
        FieldSpec("lastCompany", "Most recent company name"),
        FieldSpec("yearsExperience",
                  'Total years of professional experience, as a string (e.g. "5", "3-5")'),
        FieldSpec("technicalSkills",
                  "Technical skills: programming languages, frameworks, tools", many=True),
        FieldSpec("education", "Education summary (degrees, schools, years)"),
        FieldSpec("summary", "Professional summary or objective (2-3 sentences)"),
    ),
)


class ResumeFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    last_job: Optional[str] = None
    last_company: Optional[str] = None
    years_experience: Optional[str] = None
    technical_skills: List[str] = Field(default_factory=list)
    education: Optional[str] = None
    summary: Optional[str] = None


class ResumeWrite(ResumeFields):
    """Body for POST /api/resumes and PUT /api/resumes/{id}."""
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    technical_skills: Optional[List[str]] = None

    def fields(self) -> ResumeFields:
        """Blank strings become null and a missing skills list becomes []."""
        data = self.model_dump(include=set(ResumeFields.model_fields))
        for name, value in data.items():
            if isinstance(value, str) and not value.strip():
                data[name] = None
        data["technical_skills"] = [s for s in data["technical_skills"] or [] if s.strip()]
        return ResumeFields.model_validate(data)


class StoredResume(ResumeFields):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    owner_id: str
    file_name: str
    file_type: str
    created_at: datetime
    updated_at: datetime


class ResumeExtractRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    extracted_text: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
