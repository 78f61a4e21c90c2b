from __future__ import annotations  # HTTP client for the Tavus v2 API

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from config import TavusConfig
from observability import log_event
from persona_builder import PersonaSpec

from .errors import DocumentIdMissingError, TavusApiError
from .models import ConversationHandle, TavusDocument, document_from_raw, documents_from_raw


logger = logging.getLogger(__name__)

MAX_CALL_DURATION_S = 600
PARTICIPANT_LEFT_TIMEOUT_S = 30
CONVERSATION_LANGUAGE = "english"


class TavusClient:
    """One method per provider operation, each issuing exactly one request.

    Nothing here retries; failures surface as ``TavusApiError`` carrying the
    upstream status and body.
    """

    def __init__(self, config: TavusConfig, *, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.config = config
        self._http = httpx.Client(
            base_url=config.base_url,
            headers={"x-api-key": config.api_key},
            timeout=config.timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TavusClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Personas

    def create_persona(self, spec: PersonaSpec, *, persona_name: str) -> str:
        body = {
            "persona_name": persona_name,
            "system_prompt": spec.system_prompt,
            "context": spec.context,
            "default_replica_id": self.config.replica_id,
        }
        response = self._send(
            "POST", "/personas", json=body, operation="create_persona",
            error="Failed to create persona", http_status=500,
        )
        persona_id = response.json().get("persona_id")
        if not persona_id:
            raise TavusApiError(
                "Failed to create persona",
                status=response.status_code,
                details="Response missing persona_id field",
                http_status=500,
                operation="create_persona",
            )
        log_event("persona.created", None, operation="create_persona", persona_id=persona_id)
        return persona_id

    def patch_persona(self, persona_id: str, spec: PersonaSpec) -> bool:
        """Replace system prompt and context; returns ``False`` on 304 (already current)."""
        operations = [
            {"op": "replace", "path": "/system_prompt", "value": spec.system_prompt},
            {"op": "replace", "path": "/context", "value": spec.context},
        ]
        response = self._send(
            "PATCH", f"/personas/{persona_id}", json=operations, operation="patch_persona",
            error="Failed to update persona", http_status=500, accept=(304,),
        )
        modified = response.status_code != 304
        log_event(
            "persona.patched", None, operation="patch_persona", persona_id=persona_id,
            outcome="modified" if modified else "not_modified",
        )
        return modified

    # Conversations

    def create_conversation(
        self,
        persona_id: str,
        *,
        greeting: str,
        document_ids: Optional[Iterable[str]] = None,
    ) -> ConversationHandle:
        body: Dict[str, Any] = {
            "replica_id": self.config.replica_id,
            "persona_id": persona_id,
            "custom_greeting": greeting,
            "properties": {
                "max_call_duration": MAX_CALL_DURATION_S,
                "participant_left_timeout": PARTICIPANT_LEFT_TIMEOUT_S,
                "enable_recording": True,
                "language": CONVERSATION_LANGUAGE,
            },
        }
        ids = list(document_ids or [])
        if ids:
            body["document_ids"] = ids
        response = self._send(
            "POST", "/conversations", json=body, operation="create_conversation",
            error="Failed to create conversation", http_status=500,
        )
        handle = ConversationHandle.model_validate(response.json())
        log_event(
            "conversation.created", handle.conversation_id,
            operation="create_conversation", persona_id=persona_id, documents=len(ids),
        )
        return handle

    def end_conversation(self, conversation_id: str) -> None:
        self._send(
            "POST", f"/conversations/{conversation_id}/end", operation="end_conversation",
            error="Failed to end conversation",
        )
        log_event("conversation.ended", conversation_id, operation="end_conversation")

    def get_conversation(self, conversation_id: str, *, verbose: bool = True) -> Dict[str, Any]:
        params = {"verbose": "true"} if verbose else None
        response = self._send(
            "GET", f"/conversations/{conversation_id}", params=params, operation="get_conversation",
            error="Failed to fetch conversation details",
        )
        return response.json()

    def list_conversations(self) -> Dict[str, Any]:
        response = self._send(
            "GET", "/conversations", operation="list_conversations",
            error="Failed to fetch conversations",
        )
        return response.json()

    # Knowledge-base documents

    def create_document(
        self,
        document_url: str,
        document_name: str,
        *,
        tags: Optional[List[str]] = None,
    ) -> TavusDocument:
        body: Dict[str, Any] = {"document_url": document_url, "document_name": document_name}
        if tags:
            body["tags"] = list(tags)
        response = self._send(
            "POST", "/documents", json=body, operation="create_document",
            error="Failed to upload document to Tavus",
        )
        document = document_from_raw(response.json())
        if document is None:
            logger.error("No document ID found in Tavus upload response")
            raise DocumentIdMissingError()
        log_event("document.created", None, operation="create_document", status=document.status)
        return document

    def list_documents(self, *, tag: Optional[str] = None) -> List[TavusDocument]:
        response = self._send(
            "GET", "/documents", operation="list_documents",
            error="Failed to fetch documents from Tavus",
        )
        data = response.json()
        items = data.get("data") if isinstance(data, dict) else data
        documents = documents_from_raw(items or [])
        if tag:
            documents = [document for document in documents if tag in document.tags]
        return documents

    def delete_document(self, document_id: str) -> None:
        self._send(
            "DELETE", f"/documents/{document_id}", operation="delete_document",
            error="Failed to delete document from Tavus",
        )
        log_event("document.deleted", None, operation="delete_document", document_id=document_id)

    def _send(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        error: str,
        json: Any = None,
        params: Optional[Dict[str, str]] = None,
        http_status: Optional[int] = None,
        accept: Iterable[int] = (),
    ) -> httpx.Response:
        logger.info("Tavus request %s %s operation=%s", method, path, operation)
        response = self._http.request(method, path, json=json, params=params)
        if response.is_success or response.status_code in tuple(accept):
            return response
        logger.error(
            "Tavus %s failed status=%s reason=%s body=%s",
            operation,
            response.status_code,
            response.reason_phrase,
            response.text[:500],
        )
        raise TavusApiError(
            error,
            status=response.status_code,
            details=response.text,
            http_status=http_status,
            operation=operation,
        )


__all__ = [
    "CONVERSATION_LANGUAGE",
    "MAX_CALL_DURATION_S",
    "PARTICIPANT_LEFT_TIMEOUT_S",
    "TavusClient",
]
