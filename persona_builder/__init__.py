from __future__ import annotations  # Re-export persona_builder public API

from .models import (  # noqa: F401
    NOT_SPECIFIED,
    DocumentFlags,
    DocumentSelection,
    InterviewConfig,
    InterviewDetails,
    PersonaSpec,
)
from .persona_builder import (  # noqa: F401
    LEETCODE_GREETING,
    build_context,
    build_greeting,
    build_persona,
    build_system_prompt,
)

__all__ = [
    "DocumentFlags",
    "DocumentSelection",
    "InterviewConfig",
    "InterviewDetails",
    "LEETCODE_GREETING",
    "NOT_SPECIFIED",
    "PersonaSpec",
    "build_context",
    "build_greeting",
    "build_persona",
    "build_system_prompt",
]
