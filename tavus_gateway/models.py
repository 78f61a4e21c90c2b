from __future__ import annotations  # Tavus response shapes and event extraction

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


logger = logging.getLogger(__name__)

DOCUMENT_ID_FIELDS = ("uuid", "document_id", "id")  # Priority order observed across endpoints

TRANSCRIPTION_READY = "application.transcription_ready"
PERCEPTION_ANALYSIS = "application.perception_analysis"
SYSTEM_SHUTDOWN = "system.shutdown"


class TavusDocument(BaseModel):  # Knowledge-base document in the shape served to the UI
    document_id: str
    document_name: Optional[str] = None
    document_url: Optional[str] = None
    status: str = "processing"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)


def normalize_document_id(raw: Mapping[str, Any]) -> Optional[str]:
    """Return the first present identifier field, or ``None`` when none is set."""
    for field in DOCUMENT_ID_FIELDS:
        value = raw.get(field)
        if value:
            return str(value)
    return None


def document_from_raw(raw: Mapping[str, Any]) -> Optional[TavusDocument]:  # Map provider document payload
    document_id = normalize_document_id(raw)
    if document_id is None:
        return None
    return TavusDocument(
        document_id=document_id,
        document_name=raw.get("document_name"),
        document_url=raw.get("document_url"),
        status=raw.get("status") or "processing",
        created_at=raw.get("created_at"),
        updated_at=raw.get("updated_at"),
        tags=list(raw.get("tags") or []),
        properties=dict(raw.get("properties") or {}),
    )


def documents_from_raw(items: Sequence[Any]) -> List[TavusDocument]:  # Drop items without an identifier
    documents: List[TavusDocument] = []
    for item in items:
        if not isinstance(item, Mapping):
            logger.warning("Skipping non-object document entry: %r", item)
            continue
        document = document_from_raw(item)
        if document is None:
            logger.warning(
                "Skipping document without uuid/document_id/id: name=%s",
                item.get("document_name"),
            )
            continue
        documents.append(document)
    return documents


class ConversationHandle(BaseModel):  # Identifiers of a freshly created conversation
    conversation_id: str
    conversation_url: str


class TranscriptMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str = ""
    timestamp: Optional[str] = None


class _EventBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event_type: str
    message_type: Optional[str] = None
    created_at: Optional[str] = None
    timestamp: Optional[str] = None


class TranscriptionReadyEvent(_EventBase):
    transcript: List[TranscriptMessage] = Field(default_factory=list)


class PerceptionAnalysisEvent(_EventBase):
    analysis: Any = None


class ShutdownEvent(_EventBase):
    shutdown_reason: Optional[str] = None


class OtherEvent(_EventBase):
    properties: Dict[str, Any] = Field(default_factory=dict)


ConversationEvent = Union[TranscriptionReadyEvent, PerceptionAnalysisEvent, ShutdownEvent, OtherEvent]


def parse_event(raw: Mapping[str, Any]) -> ConversationEvent:
    """Lift one raw provider event into its typed variant.

    Malformed payloads of a known type degrade to ``OtherEvent`` so a single
    bad entry never hides the rest of the list.
    """
    event_type = str(raw.get("event_type") or "")
    envelope = {
        "event_type": event_type,
        "message_type": raw.get("message_type"),
        "created_at": raw.get("created_at"),
        "timestamp": raw.get("timestamp"),
    }
    properties = raw.get("properties") or {}
    if not isinstance(properties, Mapping):
        properties = {}
    try:
        if event_type == TRANSCRIPTION_READY:
            return TranscriptionReadyEvent(**envelope, transcript=properties.get("transcript") or [])
        if event_type == PERCEPTION_ANALYSIS:
            return PerceptionAnalysisEvent(**envelope, analysis=properties.get("analysis") or None)
        if event_type == SYSTEM_SHUTDOWN:
            return ShutdownEvent(**envelope, shutdown_reason=properties.get("shutdown_reason"))
    except ValidationError as exc:
        logger.warning("Malformed %s event: %s", event_type, exc)
    return OtherEvent(**envelope, properties=dict(properties))


class ExtractedEvents(BaseModel):  # Payloads located in a conversation's event list
    transcript: List[TranscriptMessage] = Field(default_factory=list)
    perception_analysis: Any = None
    shutdown_reason: Optional[str] = None
    event_types: List[str] = Field(default_factory=list)

    @property
    def display_transcript(self) -> List[TranscriptMessage]:
        return [message for message in self.transcript if message.role != "system"]


def extract_events(raw_events: Optional[Sequence[Any]]) -> ExtractedEvents:
    """Scan an unordered event list; the first event of each kind wins."""
    extracted = ExtractedEvents()
    seen: set[type] = set()
    for raw in raw_events or []:
        if not isinstance(raw, Mapping):
            continue
        event = parse_event(raw)
        extracted.event_types.append(event.event_type)
        kind = type(event)
        if kind in seen or kind is OtherEvent:
            continue
        seen.add(kind)
        if isinstance(event, TranscriptionReadyEvent):
            extracted.transcript = list(event.transcript)
        elif isinstance(event, PerceptionAnalysisEvent):
            extracted.perception_analysis = event.analysis
        elif isinstance(event, ShutdownEvent):
            extracted.shutdown_reason = event.shutdown_reason
    return extracted


def parse_created_at(value: Any) -> Optional[datetime]:  # Parse provider ISO timestamp as aware UTC
    if not isinstance(value, str) or not value:
        return None
    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        logger.warning("Unparseable created_at timestamp: %s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = [
    "ConversationEvent",
    "ConversationHandle",
    "DOCUMENT_ID_FIELDS",
    "ExtractedEvents",
    "OtherEvent",
    "PERCEPTION_ANALYSIS",
    "PerceptionAnalysisEvent",
    "SYSTEM_SHUTDOWN",
    "ShutdownEvent",
    "TRANSCRIPTION_READY",
    "TavusDocument",
    "TranscriptMessage",
    "TranscriptionReadyEvent",
    "document_from_raw",
    "documents_from_raw",
    "extract_events",
    "normalize_document_id",
    "parse_created_at",
    "parse_event",
]
