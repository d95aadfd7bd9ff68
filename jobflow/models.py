"""Data models for job offers and tracked applications."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# Placeholder stored when an imported offer has no resolved value
UNRESOLVED = "À préciser"


class ApplicationStatus(str, Enum):
    """Workflow state of an application. Any state may be set directly."""

    TO_COMPLETE = "à compléter"
    IN_PROGRESS = "en cours"
    SUBMITTED = "soumise"
    INTERVIEW = "entretien"


class Contact(BaseModel):
    """A recruiter or HR contact attached to an application."""

    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None


class JobOfferDraft(BaseModel):
    """An unpersisted offer produced by the extractor."""

    title: str
    company: Optional[str] = None
    location: Optional[str] = None
    channel: str
    source_label: str
    keywords_blob: str = ""
    deadline: Optional[str] = None  # ISO YYYY-MM-DD
    deadline_raw: Optional[str] = None
    deadline_missing: bool = True
    contact_email: Optional[str] = None
    contact_person: Optional[str] = None
    publication_date: Optional[str] = None
    application_instructions: Optional[str] = None
    application_method: Optional[str] = None
    language: Optional[str] = None
    is_expired: bool = False
    required_documents: list[str] = Field(default_factory=list)
    source_url: Optional[str] = None
    description: Optional[str] = None

    def dedupe_key(self) -> tuple[str, str]:
        return (self.title.strip().lower(), (self.company or "").strip().lower())

    def to_text(self) -> str:
        """Text sent to the analysis service for this draft."""
        parts = [self.title, self.company or "", self.location or "", self.description or self.keywords_blob]
        return "\n".join(p for p in parts if p)


class Application(BaseModel):
    """A tracked job offer or application."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    company: str
    title: str
    location: str
    deadline: str  # YYYY-MM-DD or ISO datetime, empty when unknown
    status: ApplicationStatus = ApplicationStatus.TO_COMPLETE
    priority: int = Field(default=3, ge=1, le=10)
    keywords: Optional[str] = None
    notes: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    channel: Optional[str] = None
    contacts: list[Contact] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    # Fields derived from the text signals and the analysis
    compatibility: Optional[int] = Field(default=None, ge=0, le=100)
    matching_skills: list[str] = Field(default_factory=list)
    missing_requirements: list[str] = Field(default_factory=list)
    recommended_channel: Optional[str] = None
    required_documents: list[str] = Field(default_factory=list)
    deadline_missing: bool = False
    publication_date: Optional[str] = None
    application_email: Optional[str] = None
    application_instructions: Optional[str] = None
    application_method: Optional[str] = None
    contact_person: Optional[str] = None
    language: Optional[str] = None
    is_expired: bool = False
    excluded: bool = False
    exclusion_reason: Optional[str] = None
    cv_template_id: Optional[str] = None
    letter_template_id: Optional[str] = None

    def dedupe_key(self) -> tuple[str, str]:
        return (self.company.strip().lower(), self.title.strip().lower())

    @classmethod
    def from_draft(cls, draft: JobOfferDraft, **overrides) -> "Application":
        """Build a stored record from an extracted draft."""
        fields = dict(
            company=draft.company or UNRESOLVED,
            title=draft.title,
            location=draft.location or UNRESOLVED,
            deadline=draft.deadline or "",
            deadline_missing=draft.deadline is None,
            keywords=draft.keywords_blob or None,
            url=draft.source_url,
            source=draft.source_label,
            channel=draft.channel,
            required_documents=list(draft.required_documents),
            publication_date=draft.publication_date,
            application_email=draft.contact_email,
            application_instructions=draft.application_instructions,
            application_method=draft.application_method,
            contact_person=draft.contact_person,
            language=draft.language,
            is_expired=draft.is_expired,
        )
        if draft.contact_person or draft.contact_email:
            fields["contacts"] = [
                Contact(name=draft.contact_person or "", email=draft.contact_email)
            ]
        fields.update(overrides)
        return cls(**fields)


class PersonalTask(BaseModel):
    """A to-do item, usually created from an application event."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: Optional[str] = None
    deadline: Optional[str] = None  # YYYY-MM-DD
    url: Optional[str] = None
    done: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class AnalysisResult(BaseModel):
    """Response of the LLM analysis endpoint."""

    compatibility: int = Field(ge=0, le=100)
    matching_skills: list[str] = Field(default_factory=list)
    missing_requirements: list[str] = Field(default_factory=list)
    keywords: str = ""
    recommended_channel: Optional[str] = None
    required_documents: list[str] = Field(default_factory=list)
    contacts: list[Contact] = Field(default_factory=list)
    excluded: bool = False
    exclusion_reason: Optional[str] = None
    reasoning: str = ""
    warning: Optional[str] = None
