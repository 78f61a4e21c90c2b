from __future__ import annotations  # Tavus gateway error types

from typing import Optional

from config import ConfigurationError


class TavusApiError(RuntimeError):
    """Non-2xx answer from the video-persona provider.

    ``status`` is the upstream status and ``details`` the raw body. ``http_status``
    is what the inbound endpoint should answer with; it defaults to the upstream
    status.
    """

    def __init__(
        self,
        error: str,
        *,
        status: Optional[int],
        details: str = "",
        http_status: Optional[int] = None,
        operation: str = "",
    ) -> None:
        super().__init__(f"{error} (status={status})")
        self.error = error
        self.status = status
        self.details = details
        self.http_status = http_status or status or 500
        self.operation = operation


class DocumentIdMissingError(TavusApiError):  # Upload answer carried no uuid/document_id/id
    def __init__(self) -> None:
        super().__init__(
            "Failed to get document ID from Tavus",
            status=None,
            details="Response missing uuid/document_id/id field",
            http_status=500,
            operation="create_document",
        )


__all__ = ["ConfigurationError", "DocumentIdMissingError", "TavusApiError"]
