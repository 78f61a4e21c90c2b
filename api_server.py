from __future__ import annotations  # FastAPI server relaying the interview UI to Tavus, OpenAI and S3

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urlparse

from fastapi import Depends, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import Providers, get_providers
from api.errors import ApiError, guard, install_error_handlers
from api.routes import router as session_router
from api.schemas import (
    CreateConversationResponse,
    DeleteDocumentResp,
    DocumentListResp,
    EndConversationReq,
    FeedbackReportReq,
    FeedbackResp,
    GenerateFeedbackReq,
    RecordingResp,
    SuccessResp,
    TranscriptResp,
    UploadDocumentReq,
    UploadDocumentResp,
    validate_interview,
)
from config import settings
from persona_builder import InterviewConfig
from services.sessions import SessionStore
from session_reports import generate_feedback_report_pdf
from tavus_gateway import extract_events, start_interview


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # Own the session store for the app lifetime
    app.state.session_store = SessionStore()
    try:
        yield
    finally:
        app.state.session_store.shutdown()


app = FastAPI(title="Mock Interview API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
install_error_handlers(app)
app.include_router(session_router)


def _require(value: Optional[str], message: str) -> str:  # Presence check answered with 400
    if value is None or not str(value).strip():
        raise ApiError(400, message)
    return value


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@app.post("/api/conversation", response_model=CreateConversationResponse)
def create_conversation(
    payload: InterviewConfig,
    providers: Providers = Depends(get_providers),
) -> CreateConversationResponse:  # Prepare the persona and open a conversation
    validate_interview(payload)
    logger.info(
        "Starting interview category=%s role=%s industry=%s level=%s type=%s documents=%s",
        payload.category,
        payload.role,
        payload.industry,
        payload.experience_level,
        payload.interview_type,
        payload.resolved_document_ids(),
    )
    with guard("create conversation"), providers.tavus(conversations=True) as tavus:
        started = start_interview(tavus, payload, strategy=providers.settings.GENERAL_PERSONA_STRATEGY)
    return CreateConversationResponse(
        conversationId=started.conversation_id,
        conversationUrl=started.conversation_url,
        documentIds=started.document_ids,
    )


@app.post("/api/end-conversation", response_model=SuccessResp)
def end_conversation(
    payload: EndConversationReq,
    providers: Providers = Depends(get_providers),
) -> SuccessResp:  # Tell the provider the call is over
    conversation_id = _require(payload.conversationId, "conversationId is required")
    with guard("end conversation"), providers.tavus() as tavus:
        tavus.end_conversation(conversation_id)
    return SuccessResp()


@app.get("/api/get-conversation")
def get_conversation(
    conversation_id: Optional[str] = None,
    providers: Providers = Depends(get_providers),
) -> Dict[str, Any]:  # Relay verbose conversation detail
    conversation_id = _require(conversation_id, "conversation_id query parameter is required")
    with guard("get conversation"), providers.tavus() as tavus:
        return tavus.get_conversation(conversation_id, verbose=True)


@app.get("/api/conversation-transcript", response_model=TranscriptResp)
def get_conversation_transcript(
    conversation_id: Optional[str] = None,
    providers: Providers = Depends(get_providers),
) -> TranscriptResp:  # Display transcript, perception analysis and shutdown reason
    conversation_id = _require(conversation_id, "conversation_id query parameter is required")
    with guard("get conversation transcript"), providers.tavus() as tavus:
        data = tavus.get_conversation(conversation_id, verbose=True)
    extracted = extract_events(data.get("events"))
    reason = extracted.shutdown_reason.replace("_", " ") if extracted.shutdown_reason else None
    return TranscriptResp(
        conversation_id=conversation_id,
        transcript=extracted.display_transcript,
        perception_analysis=extracted.perception_analysis,
        shutdown_reason=reason,
    )


@app.get("/api/list-conversations")
def list_conversations(providers: Providers = Depends(get_providers)) -> Dict[str, Any]:  # Relay conversation history
    with guard("list conversations"), providers.tavus() as tavus:
        return tavus.list_conversations()


@app.get("/api/list-documents", response_model=DocumentListResp)
def list_documents(
    tag: Optional[str] = None,
    providers: Providers = Depends(get_providers),
) -> DocumentListResp:  # Knowledge-base documents, optionally filtered by tag
    with guard("list documents"), providers.tavus() as tavus:
        documents = tavus.list_documents(tag=tag or None)
    return DocumentListResp(documents=documents)


@app.post("/api/upload-document", response_model=UploadDocumentResp)
def upload_document(
    payload: UploadDocumentReq,
    providers: Providers = Depends(get_providers),
) -> UploadDocumentResp:  # Register a document URL with the knowledge base
    document_url = _require(payload.documentUrl, "documentUrl is required").strip()
    document_name = _require(payload.documentName, "documentName is required").strip()
    if not _is_http_url(document_url):
        raise ApiError(400, "documentUrl must be an absolute http(s) URL")
    with guard("upload document"), providers.tavus() as tavus:
        document = tavus.create_document(document_url, document_name, tags=payload.tags)
    return UploadDocumentResp(
        document_id=document.document_id,
        document_name=document.document_name,
        status=document.status,
    )


@app.delete("/api/delete-document", response_model=DeleteDocumentResp)
def delete_document(
    document_id: Optional[str] = None,
    providers: Providers = Depends(get_providers),
) -> DeleteDocumentResp:  # Remove a document from the knowledge base
    document_id = _require(document_id, "document_id is required")
    with guard("delete document"), providers.tavus() as tavus:
        tavus.delete_document(document_id)
    return DeleteDocumentResp(document_id=document_id)


@app.get("/api/get-recording-url", response_model=RecordingResp)
def get_recording_url(
    conversation_id: Optional[str] = None,
    providers: Providers = Depends(get_providers),
) -> RecordingResp:  # Signed recording link or the reason there is none
    conversation_id = _require(conversation_id, "conversation_id is required")
    with guard("get recording url"):
        status = providers.recording_locator().locate(conversation_id)
    return RecordingResp(**status.model_dump())


@app.post("/api/generate-feedback", response_model=FeedbackResp)
def generate_feedback(
    payload: GenerateFeedbackReq,
    providers: Providers = Depends(get_providers),
) -> FeedbackResp:  # Transcript-based interview feedback in markdown
    conversation_id = _require(payload.conversationId, "conversationId is required")
    with guard("generate feedback"), providers.tavus() as tavus:
        synthesizer = providers.feedback_synthesizer(tavus)
        result = synthesizer.generate(conversation_id, payload.interviewConfig)
    logger.info("Feedback phases for %s: %s", conversation_id, result.events)
    return FeedbackResp(feedback=result.feedback)


@app.post("/api/feedback-report")
def feedback_report(payload: FeedbackReportReq) -> Response:  # Render feedback markdown as a PDF
    feedback = _require(payload.feedback, "feedback is required")
    with guard("render feedback report"):
        pdf_bytes = generate_feedback_report_pdf(
            feedback,
            details=payload.interviewConfig,
            conversation_id=payload.conversationId,
        )
    filename = f"interview-feedback-{payload.conversationId or 'report'}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
