"""FastAPI routes for interview session control."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import Providers, get_providers, get_session_store
from api.errors import ApiError, guard
from api.schemas import SessionResp, SuccessResp, validate_interview
from persona_builder import InterviewConfig
from services.sessions import ConversationSession, SessionStore
from tavus_gateway import StartedInterview, start_interview


router = APIRouter(prefix="/api/sessions")


def _resp(session: ConversationSession) -> SessionResp:
    return SessionResp(
        session_id=session.session_id,
        status=session.status,
        conversation_id=session.conversation_id,
        conversation_url=session.conversation_url,
        error=session.error,
        start_time=session.start_time,
        document_ids=session.document_ids,
    )


def _load(store: SessionStore, session_id: str) -> ConversationSession:
    try:
        return store.get(session_id)
    except KeyError as exc:
        raise ApiError(404, "session not found") from exc


def _launcher(providers: Providers):
    def _launch(config: InterviewConfig) -> StartedInterview:
        with providers.tavus(conversations=True) as tavus:
            return start_interview(tavus, config, strategy=providers.settings.GENERAL_PERSONA_STRATEGY)

    return _launch


def _end_notifier(providers: Providers):
    def _notify(conversation_id: str) -> None:
        with providers.tavus() as tavus:
            tavus.end_conversation(conversation_id)

    return _notify


@router.post("", response_model=SessionResp)
def create(store: SessionStore = Depends(get_session_store)) -> SessionResp:  # New idle session
    return _resp(store.create())


@router.post("/{session_id}/start", response_model=SessionResp)
def start(
    session_id: str,
    req: InterviewConfig,
    providers: Providers = Depends(get_providers),
    store: SessionStore = Depends(get_session_store),
) -> SessionResp:
    """Launch the interview for an idle session.

    A failed launch leaves the session in ``error``; it can be read and reset
    under the same id.
    """
    _load(store, session_id)
    validate_interview(req)
    with guard("start session"):
        session = store.start(session_id, req, _launcher(providers))
    return _resp(session)


@router.get("/{session_id}", response_model=SessionResp)
def get(session_id: str, store: SessionStore = Depends(get_session_store)) -> SessionResp:
    return _resp(_load(store, session_id))


@router.post("/{session_id}/end", response_model=SessionResp)
def end(
    session_id: str,
    providers: Providers = Depends(get_providers),
    store: SessionStore = Depends(get_session_store),
) -> SessionResp:
    _load(store, session_id)
    session, _ = store.end(session_id, _end_notifier(providers))
    return _resp(session)


@router.post("/{session_id}/reset", response_model=SessionResp)
def reset(session_id: str, store: SessionStore = Depends(get_session_store)) -> SessionResp:
    _load(store, session_id)
    return _resp(store.reset(session_id))


@router.delete("/{session_id}", response_model=SuccessResp)
def remove(session_id: str, store: SessionStore = Depends(get_session_store)) -> SuccessResp:
    _load(store, session_id)
    store.remove(session_id)
    return SuccessResp()
