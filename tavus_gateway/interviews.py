from __future__ import annotations  # Persona selection and conversation launch

import logging
import time
from typing import List

from pydantic import BaseModel, Field

from config.settings import PersonaStrategy
from observability import log_event
from persona_builder import InterviewConfig, build_greeting, build_persona

from .client import TavusClient


logger = logging.getLogger(__name__)


class StartedInterview(BaseModel):  # Conversation created for one interview
    conversation_id: str
    conversation_url: str
    persona_id: str
    document_ids: List[str] = Field(default_factory=list)


def start_interview(
    client: TavusClient,
    config: InterviewConfig,
    *,
    strategy: PersonaStrategy = "patch_shared",
) -> StartedInterview:
    """Pick or prepare the persona for ``config`` and create the conversation.

    Leetcode interviews use the fixed leetcode persona untouched. General
    interviews patch the shared recruiter persona first, unless ``strategy`` is
    ``create_per_interview``, in which case a dedicated persona is created.
    Concurrent general interviews on the shared persona may observe each
    other's patch.
    """
    document_ids = config.resolved_document_ids()
    if config.category == "leetcode":
        persona_id = client.config.leetcode_persona_id
        greeting = build_greeting(config)
    else:
        persona = build_persona(config)
        greeting = persona.greeting
        if strategy == "create_per_interview":
            persona_id = client.create_persona(
                persona,
                persona_name=f"Interviewer-{int(time.time() * 1000)}",
            )
        else:
            persona_id = client.config.general_recruiter_id
            client.patch_persona(persona_id, persona)
    if not persona_id:
        raise ValueError(f"No persona configured for category '{config.category}'")

    log_event(
        "interview.starting", None,
        category=config.category, persona_id=persona_id, documents=len(document_ids),
    )
    handle = client.create_conversation(persona_id, greeting=greeting, document_ids=document_ids)
    return StartedInterview(
        conversation_id=handle.conversation_id,
        conversation_url=handle.conversation_url,
        persona_id=persona_id,
        document_ids=document_ids,
    )


__all__ = ["StartedInterview", "start_interview"]
