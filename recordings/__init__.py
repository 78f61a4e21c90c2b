from __future__ import annotations  # Re-export recordings public API

from .recordings import (  # noqa: F401
    DEFAULT_AGE_THRESHOLD,
    SIGNED_URL_EXPIRY_S,
    RecordingLocator,
    RecordingStatus,
    classify_missing,
    create_s3_client,
    is_recording_key,
    select_recording_key,
)

__all__ = [
    "DEFAULT_AGE_THRESHOLD",
    "SIGNED_URL_EXPIRY_S",
    "RecordingLocator",
    "RecordingStatus",
    "classify_missing",
    "create_s3_client",
    "is_recording_key",
    "select_recording_key",
]
