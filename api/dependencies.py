"""Provider wiring shared by the FastAPI endpoints."""
from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx
from fastapi import Request

from config import LlmRoute, Settings, StorageConfig, TavusConfig, settings as default_settings
from feedback_synthesis import FeedbackSynthesizer
from llm_gateway import HttpClient
from recordings import RecordingLocator, create_s3_client
from services.sessions import SessionStore
from tavus_gateway import TavusClient, parse_created_at


class Providers:
    """Builds validated provider clients from ``Settings`` on demand.

    Every builder validates its configuration first, so a missing credential
    raises ``ConfigurationError`` before any network call. Transports, the
    sleep function and the clock are injectable for tests.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        tavus_transport: Optional[httpx.BaseTransport] = None,
        llm_client: Optional[HttpClient] = None,
        s3_client_factory: Callable[[StorageConfig], Any] = create_s3_client,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.settings = settings
        self._tavus_transport = tavus_transport
        self._llm_client = llm_client
        self._s3_client_factory = s3_client_factory
        self._sleep = sleep
        self._clock = clock

    def tavus(self, *, conversations: bool = False) -> TavusClient:
        config = TavusConfig.from_settings(self.settings, conversations=conversations)
        return TavusClient(config, transport=self._tavus_transport)

    def feedback_route(self) -> LlmRoute:
        return LlmRoute.feedback_route(self.settings)

    def feedback_synthesizer(self, tavus: TavusClient) -> FeedbackSynthesizer:
        return FeedbackSynthesizer(
            tavus,
            self.feedback_route(),
            retry_delay_s=self.settings.TRANSCRIPT_RETRY_DELAY_S,
            sleep=self._sleep,
            llm_client=self._llm_client,
        )

    def recording_locator(self) -> RecordingLocator:
        return RecordingLocator(
            StorageConfig.from_settings(self.settings),
            created_at_lookup=self._conversation_created_at,
            client_factory=self._s3_client_factory,
            threshold=timedelta(hours=self.settings.RECORDING_AGE_THRESHOLD_HOURS),
            clock=self._clock,
        )

    def _conversation_created_at(self, conversation_id: str) -> Optional[datetime]:
        with self.tavus() as tavus:
            data = tavus.get_conversation(conversation_id, verbose=False)
        return parse_created_at(data.get("created_at"))


_providers: Optional[Providers] = None


def get_providers() -> Providers:
    global _providers
    if _providers is None:
        _providers = Providers(default_settings)
    return _providers


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


__all__ = ["Providers", "get_providers", "get_session_store"]
