"""Pydantic schemas for the mock interview API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

from api.errors import ApiError
from persona_builder import InterviewConfig, InterviewDetails
from tavus_gateway import TavusDocument, TranscriptMessage


class CreateConversationResponse(BaseModel):
    conversationId: str
    conversationUrl: str
    documentIds: List[str] = Field(default_factory=list)


class EndConversationReq(BaseModel):
    conversationId: Optional[str] = None


class SuccessResp(BaseModel):
    success: bool = True


class GenerateFeedbackReq(BaseModel):
    conversationId: Optional[str] = None
    interviewConfig: Optional[InterviewDetails] = None


class FeedbackResp(BaseModel):
    feedback: str


class UploadDocumentReq(BaseModel):
    documentUrl: Optional[str] = None
    documentName: Optional[str] = None
    tags: Optional[List[str]] = None


class UploadDocumentResp(BaseModel):
    document_id: str
    document_name: Optional[str] = None
    status: str = "processing"


class DocumentListResp(BaseModel):
    documents: List[TavusDocument] = Field(default_factory=list)


class DeleteDocumentResp(BaseModel):
    success: bool = True
    document_id: str


class RecordingResp(BaseModel):
    recording_url: Optional[str] = None
    status: str
    message: str


class TranscriptResp(BaseModel):
    conversation_id: str
    transcript: List[TranscriptMessage] = Field(default_factory=list)
    perception_analysis: Any = None
    shutdown_reason: Optional[str] = None


class FeedbackReportReq(BaseModel):
    feedback: Optional[str] = None
    conversationId: Optional[str] = None
    interviewConfig: Optional[InterviewDetails] = None


class SessionResp(BaseModel):
    session_id: str
    status: Literal["idle", "loading", "active", "ended", "error"]
    conversation_id: Optional[str] = None
    conversation_url: Optional[str] = None
    error: Optional[str] = None
    start_time: Optional[datetime] = None
    document_ids: List[str] = Field(default_factory=list)


_GENERAL_FIELDS = (
    ("role", "role"),
    ("industry", "industry"),
    ("experience_level", "experienceLevel"),
    ("interview_type", "interviewType"),
)


def validate_interview(config: InterviewConfig) -> None:  # Leetcode needs only its category
    if config.category != "general":
        return
    for field, name in _GENERAL_FIELDS:
        value = getattr(config, field)
        if value is None or not str(value).strip():
            raise ApiError(400, f"{name} is required for general interviews")
