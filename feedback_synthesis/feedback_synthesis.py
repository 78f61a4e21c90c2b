from __future__ import annotations  # Interview feedback synthesis from conversation transcripts

import json
import logging
import time
from textwrap import dedent
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from config import LlmRoute
from llm_gateway import HttpClient, complete
from observability import log_event, span
from persona_builder import InterviewDetails
from tavus_gateway import ExtractedEvents, TavusApiError, TavusClient, TranscriptMessage, extract_events


logger = logging.getLogger(__name__)

TRANSCRIPT_RETRY_DELAY_S = 10.0
FEEDBACK_TEMPERATURE = 0.7
FEEDBACK_MAX_TOKENS = 2000

NO_TRANSCRIPT_FEEDBACK = dedent(
    """
    # Interview Feedback

    ⚠️ No transcript available yet. The conversation may still be processing.

    ## What You Can Do:
    - The interview may have been too short to generate a transcript
    - Try having a longer conversation (at least 1-2 minutes)
    - Wait a few moments and refresh the page

    **Tip:** For best results, have a natural conversation with the interviewer for at least 2-3 questions.
    """
).strip()

FEEDBACK_SYSTEM_PROMPT = dedent(
    """
    You are an expert interview coach providing constructive feedback on mock interviews. Analyze both the transcript and visual analysis to provide detailed, actionable feedback.

    CRITICAL FORMATTING RULES:
    - Use strict markdown formatting with clear hierarchy
    - Start with an overall performance summary (2-3 sentences)
    - Organize feedback into EXACTLY these sections with ## headers:
      ## Overall Performance
      ## Key Strengths
      ## Areas for Improvement
      ## Specific Recommendations
      ## Visual Presence & Body Language (only if perception analysis is available)
    - Use bullet points with meaningful content only (NO empty bullets)
    - Each bullet should be specific and actionable
    - Use **bold** for emphasis on key points
    - Keep feedback constructive and professional
    - The feedback is for the 'user' role in the transcript, not 'system' or 'assistant'
    - Aim for 8-15 total bullet points across all sections
    - Each section should have 2-4 substantive bullet points

    STRUCTURE EXAMPLE:
    ## Overall Performance
    [2-3 sentence summary of performance]

    ## Key Strengths
    - **[Strength category]**: Specific observation with example from interview
    - **[Strength category]**: Specific observation with example

    ## Areas for Improvement
    - **[Area]**: What to improve and why, with specific suggestion
    - **[Area]**: What to improve and why, with specific suggestion

    ## Specific Recommendations
    - **[Action item]**: Concrete next step to practice
    - **[Action item]**: Concrete next step to practice

    ## Visual Presence & Body Language
    [Only if perception analysis is available]
    - **[Observation]**: Based on visual analysis data
    """
).strip()


class FeedbackResult(BaseModel):  # Markdown feedback plus how it was produced
    feedback: str
    transcript_available: bool
    retried: bool = False
    perception_included: bool = False
    events: List[Dict[str, Any]] = Field(default_factory=list)


class FeedbackSynthesizer:
    """Fetch a transcript, retry once if it is not ready, and ask the LLM for feedback.

    ``sleep`` and ``llm_client`` are injectable so the single fixed delay and
    the completion call can be observed without real waiting or network.
    """

    def __init__(
        self,
        tavus: TavusClient,
        route: LlmRoute,
        *,
        retry_delay_s: float = TRANSCRIPT_RETRY_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
        llm_client: Optional[HttpClient] = None,
    ) -> None:
        self.tavus = tavus
        self.route = route
        self.retry_delay_s = retry_delay_s
        self._sleep = sleep
        self._llm_client = llm_client

    def generate(self, conversation_id: str, details: Optional[InterviewDetails] = None) -> FeedbackResult:
        details = details or InterviewDetails()
        events: List[Dict[str, Any]] = []

        with span(events, "fetch"):
            extracted = self._fetch(conversation_id)
        self._log_extracted(conversation_id, extracted, attempt=1)

        retried = False
        if not extracted.transcript:
            retried = True
            logger.info(
                "Transcript not ready for %s, waiting %.0f seconds and retrying",
                conversation_id,
                self.retry_delay_s,
            )
            with span(events, "retry"):
                self._sleep(self.retry_delay_s)
                extracted = self._refetch(conversation_id, fallback=extracted)
            self._log_extracted(conversation_id, extracted, attempt=2)
            if not extracted.transcript:
                log_event("feedback.placeholder", conversation_id, outcome="no_transcript")
                return FeedbackResult(
                    feedback=NO_TRANSCRIPT_FEEDBACK,
                    transcript_available=False,
                    retried=True,
                    events=events,
                )

        messages = build_feedback_messages(extracted.transcript, details, extracted.perception_analysis)
        with span(events, "synthesize"):
            feedback = complete(
                messages,
                cfg=self.route,
                client=self._llm_client,
                options={"temperature": FEEDBACK_TEMPERATURE, "max_tokens": FEEDBACK_MAX_TOKENS},
            )
        log_event("feedback.generated", conversation_id, outcome="ok", retried=retried)
        return FeedbackResult(
            feedback=feedback,
            transcript_available=True,
            retried=retried,
            perception_included=extracted.perception_analysis is not None,
            events=events,
        )

    def _fetch(self, conversation_id: str) -> ExtractedEvents:
        data = self.tavus.get_conversation(conversation_id, verbose=True)
        return extract_events(data.get("events"))

    def _refetch(self, conversation_id: str, *, fallback: ExtractedEvents) -> ExtractedEvents:
        # A failed second fetch falls through to the placeholder path
        try:
            return self._fetch(conversation_id)
        except TavusApiError as exc:
            logger.warning("Transcript retry fetch failed for %s: %s", conversation_id, exc)
            return fallback

    def _log_extracted(self, conversation_id: str, extracted: ExtractedEvents, *, attempt: int) -> None:
        logger.info(
            "Conversation %s attempt=%d events=%s transcript=%d perception=%s",
            conversation_id,
            attempt,
            extracted.event_types,
            len(extracted.transcript),
            extracted.perception_analysis is not None,
        )


def format_transcript(transcript: Sequence[TranscriptMessage]) -> str:  # Render role: content lines
    return "\n\n".join(f"{message.role}: {message.content}" for message in transcript)


def build_feedback_messages(
    transcript: Sequence[TranscriptMessage],
    details: InterviewDetails,
    perception_analysis: Any = None,
) -> List[Dict[str, str]]:  # System instruction plus interview-specific user message
    perception_text = ""
    if perception_analysis is not None:
        perception_text = "\n\nVisual Analysis:\n" + json.dumps(perception_analysis, indent=2, ensure_ascii=False)
    user_prompt = (
        "Interview Details:\n"
        f"- Role: {details.shown('role')}\n"
        f"- Industry: {details.shown('industry')}\n"
        f"- Experience Level: {details.shown('experience_level')}\n"
        f"- Interview Type: {details.shown('interview_type')}\n"
        "\n"
        "Transcript:\n"
        f"{format_transcript(transcript)}{perception_text}\n"
        "\n"
        "Provide detailed, constructive feedback following the exact format specified in the system prompt."
    )
    return [
        {"role": "system", "content": FEEDBACK_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]
