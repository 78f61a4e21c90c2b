from __future__ import annotations  # Re-export tavus_gateway public API

from .client import TavusClient
from .errors import ConfigurationError, DocumentIdMissingError, TavusApiError
from .interviews import StartedInterview, start_interview
from .models import (
    ConversationHandle,
    ExtractedEvents,
    TavusDocument,
    TranscriptMessage,
    extract_events,
    normalize_document_id,
    parse_created_at,
)

__all__ = [
    "ConfigurationError",
    "ConversationHandle",
    "DocumentIdMissingError",
    "ExtractedEvents",
    "StartedInterview",
    "TavusApiError",
    "TavusClient",
    "TavusDocument",
    "TranscriptMessage",
    "extract_events",
    "normalize_document_id",
    "parse_created_at",
    "start_interview",
]
