from __future__ import annotations  # Recording lookup in object storage

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Literal, Mapping, Optional

import boto3
from pydantic import BaseModel

from config import StorageConfig
from observability import log_event


logger = logging.getLogger(__name__)

RecordingState = Literal["checking", "ready", "processing", "not_configured", "not_available", "error"]

RECORDING_PREFIX = "tavus"
SIGNED_URL_EXPIRY_S = 3600
MAX_KEYS = 100
VIDEO_EXTENSIONS = (".mp4", ".webm")
DEFAULT_AGE_THRESHOLD = timedelta(hours=2)

MESSAGES = {
    "ready": "Recording is ready to watch",
    "processing": "Recording is still processing. Try refreshing in a few minutes.",
    "not_configured": "Recording feature is not configured for this application",
    "not_available": (
        "This conversation does not have a recording. Recording may not have been "
        "enabled when this interview was conducted."
    ),
    "error": "Failed to check recording status. Please try again later.",
}


class RecordingStatus(BaseModel):  # Per-view recording availability; never persisted
    recording_url: Optional[str] = None
    status: RecordingState
    message: str

    @classmethod
    def of(cls, status: RecordingState, url: Optional[str] = None) -> "RecordingStatus":
        return cls(recording_url=url, status=status, message=MESSAGES[status])


def create_s3_client(storage: StorageConfig) -> Any:  # Build a boto3 S3 client from explicit credentials
    return boto3.client(
        "s3",
        region_name=storage.region,
        aws_access_key_id=storage.access_key_id,
        aws_secret_access_key=storage.secret_access_key,
    )


def recording_prefix(conversation_id: str) -> str:
    return f"{RECORDING_PREFIX}/{conversation_id}/"


def is_recording_key(key: str) -> bool:
    """Folder markers never match; video extensions or no extension at all do."""
    if key.endswith("/"):
        return False
    name = key.rsplit("/", 1)[-1]
    return name.endswith(VIDEO_EXTENSIONS) or "." not in name


def select_recording_key(contents: List[Mapping[str, Any]]) -> Optional[str]:
    for obj in contents:
        key = obj.get("Key")
        if isinstance(key, str) and is_recording_key(key):
            return key
    return None


def classify_missing(
    created_at: Optional[datetime],
    *,
    now: datetime,
    threshold: timedelta = DEFAULT_AGE_THRESHOLD,
) -> RecordingState:
    """An absent recording is ``not_available`` once the conversation is at least ``threshold`` old."""
    if created_at is None:
        return "processing"
    if now - created_at >= threshold:
        return "not_available"
    return "processing"


class RecordingLocator:
    """Find a conversation's recording and hand out a short-lived signed URL.

    Storage failures are reported as status ``error``; nothing raises to the
    caller. When ``storage`` is ``None`` no client is ever built.
    """

    def __init__(
        self,
        storage: Optional[StorageConfig],
        *,
        created_at_lookup: Callable[[str], Optional[datetime]],
        client_factory: Callable[[StorageConfig], Any] = create_s3_client,
        threshold: timedelta = DEFAULT_AGE_THRESHOLD,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.storage = storage
        self._created_at_lookup = created_at_lookup
        self._client_factory = client_factory
        self.threshold = threshold
        self._clock = clock

    def locate(self, conversation_id: str) -> RecordingStatus:
        if self.storage is None:
            return RecordingStatus.of("not_configured")
        try:
            result = self._locate(self.storage, conversation_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("S3 error while locating recording for %s: %s", conversation_id, exc)
            result = RecordingStatus.of("error")
        log_event("recording.lookup", conversation_id, status=result.status)
        return result

    def _locate(self, storage: StorageConfig, conversation_id: str) -> RecordingStatus:
        s3 = self._client_factory(storage)
        prefix = recording_prefix(conversation_id)
        listing = s3.list_objects_v2(Bucket=storage.bucket, Prefix=prefix, MaxKeys=MAX_KEYS)
        contents = listing.get("Contents") or []
        logger.info("Found %d objects under %s", len(contents), prefix)
        key = select_recording_key(contents)
        if key is not None:
            url = s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": storage.bucket, "Key": key},
                ExpiresIn=SIGNED_URL_EXPIRY_S,
            )
            return RecordingStatus.of("ready", url)
        created_at = self._lookup_created_at(conversation_id)
        return RecordingStatus.of(classify_missing(created_at, now=self._clock(), threshold=self.threshold))

    def _lookup_created_at(self, conversation_id: str) -> Optional[datetime]:
        # Missing metadata only means we cannot tell old from in-flight
        try:
            return self._created_at_lookup(conversation_id)
        except Exception as exc:  # noqa: BLE001
            logger.info("Could not fetch conversation metadata for %s: %s", conversation_id, exc)
            return None


__all__ = [
    "DEFAULT_AGE_THRESHOLD",
    "RecordingLocator",
    "RecordingState",
    "RecordingStatus",
    "SIGNED_URL_EXPIRY_S",
    "classify_missing",
    "create_s3_client",
    "is_recording_key",
    "recording_prefix",
    "select_recording_key",
]
