from __future__ import annotations  # Interview configuration models

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Category = Literal["leetcode", "general"]
ExperienceLevel = Literal["entry", "mid", "senior", "executive"]
InterviewType = Literal["behavioral", "technical", "mixed"]

NOT_SPECIFIED = "Not specified"


class DocumentFlags(BaseModel):  # Which knowledge-base documents back the persona
    has_resume: bool = False
    has_job_description: bool = False

    @property
    def has_documents(self) -> bool:
        return self.has_resume or self.has_job_description

    @classmethod
    def from_document_ids(cls, document_ids: Optional[List[str]]) -> "DocumentFlags":
        """Positional inference: first id is the resume, second the job description.

        A lone job description is therefore reported as a resume. Callers that
        know the role of each document should use ``DocumentSelection``.
        """
        count = len(document_ids or [])
        return cls(has_resume=count > 0, has_job_description=count > 1)


class DocumentSelection(BaseModel):  # Tagged resume/job-description choice from the setup form
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    resume_id: Optional[str] = None
    job_description_id: Optional[str] = None

    def document_ids(self) -> List[str]:
        return [doc_id for doc_id in (self.resume_id, self.job_description_id) if doc_id]

    def flags(self) -> DocumentFlags:
        return DocumentFlags(
            has_resume=bool(self.resume_id),
            has_job_description=bool(self.job_description_id),
        )


class InterviewConfig(BaseModel):  # Interview setup submitted by the candidate
    """Setup-form submission used to start an interview.

    ``category`` has no default. Role, industry, level and type are only
    checked at the API boundary for general interviews; leetcode ignores them.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    category: Category
    role: str = ""
    industry: str = ""
    experience_level: Optional[ExperienceLevel] = None
    interview_type: Optional[InterviewType] = None
    document_ids: Optional[List[str]] = None
    documents: Optional[DocumentSelection] = None

    def resolved_document_ids(self) -> List[str]:
        if self._tagged():
            return self.documents.document_ids()
        return [doc_id for doc_id in (self.document_ids or []) if doc_id]

    def document_flags(self) -> DocumentFlags:
        if self._tagged():
            return self.documents.flags()
        return DocumentFlags.from_document_ids(self.resolved_document_ids())

    def _tagged(self) -> bool:  # An empty tagged selection falls back to documentIds
        return self.documents is not None and bool(self.documents.document_ids())


class InterviewDetails(BaseModel):
    """Interview setup echoed back by the results screen for feedback and reports.

    Every field is optional; missing values are shown as ``NOT_SPECIFIED``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    category: Optional[str] = None
    role: Optional[str] = None
    industry: Optional[str] = None
    experience_level: Optional[str] = None
    interview_type: Optional[str] = None

    def shown(self, field: str) -> str:
        value = getattr(self, field)
        return value.strip() if value and value.strip() else NOT_SPECIFIED


class PersonaSpec(BaseModel):  # Persona fields pushed to the video-persona provider
    system_prompt: str
    context: str
    greeting: str
    flags: DocumentFlags = Field(default_factory=DocumentFlags)


__all__ = [
    "Category",
    "DocumentFlags",
    "DocumentSelection",
    "ExperienceLevel",
    "InterviewConfig",
    "InterviewDetails",
    "InterviewType",
    "NOT_SPECIFIED",
    "PersonaSpec",
]
