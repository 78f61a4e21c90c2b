from __future__ import annotations  # Re-export feedback_synthesis public API

from .feedback_synthesis import (  # noqa: F401
    FEEDBACK_MAX_TOKENS,
    FEEDBACK_SYSTEM_PROMPT,
    FEEDBACK_TEMPERATURE,
    NO_TRANSCRIPT_FEEDBACK,
    TRANSCRIPT_RETRY_DELAY_S,
    FeedbackResult,
    FeedbackSynthesizer,
    build_feedback_messages,
    format_transcript,
)

__all__ = [
    "FEEDBACK_MAX_TOKENS",
    "FEEDBACK_SYSTEM_PROMPT",
    "FEEDBACK_TEMPERATURE",
    "NO_TRANSCRIPT_FEEDBACK",
    "TRANSCRIPT_RETRY_DELAY_S",
    "FeedbackResult",
    "FeedbackSynthesizer",
    "build_feedback_messages",
    "format_transcript",
]
