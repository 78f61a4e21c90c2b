from __future__ import annotations  # Interviewer persona prompt and greeting builder

from textwrap import dedent
from typing import Optional

from .models import DocumentFlags, InterviewConfig, PersonaSpec


LEETCODE_GREETING = "Hi there! Thanks for joining me today. Ready to solve some coding problems together?"

_GUIDELINES = dedent(
    """
    INTERVIEW GUIDELINES:
    - Start with a warm, professional greeting and brief introduction
    - Ask 4-5 questions total, mixing behavioral and role-specific questions
    - Use the STAR method to probe deeper on behavioral questions (ask follow-ups like "What was the result?" or "How did you handle that specifically?")
    - Be encouraging but professional - nod, say "great" or "interesting" naturally
    - Keep track of which questions you've asked - don't repeat
    - After 4-5 questions, wrap up professionally and thank the candidate
    """
).strip()

_QUESTION_TYPES = dedent(
    """
    QUESTION TYPES TO INCLUDE:
    1. An icebreaker ("Tell me about yourself" or "Walk me through your background")
    2. A behavioral question ("Tell me about a time when...")
    3. A role-specific technical or situational question
    4. A question about challenges or failures (growth mindset)
    5. Candidate's questions ("What questions do you have for me?")
    """
).strip()

_STYLE = dedent(
    """
    CONVERSATION STYLE:
    - Speak naturally and conversationally, not robotically
    - React to their answers briefly before moving on
    - If an answer is vague, ask ONE clarifying follow-up
    - Keep your responses concise (2-3 sentences max between questions)
    - Maintain a {tone} tone
    """
).strip()

_CLOSING = dedent(
    """
    END THE INTERVIEW:
    - After the candidate asks their questions (or declines), thank them warmly
    - Mention that they'll "hear back soon" (standard interview closing)
    - Say goodbye professionally
    """
).strip()


def build_system_prompt(config: InterviewConfig, flags: DocumentFlags | None = None) -> str:  # Compose persona system prompt
    flags = flags if flags is not None else config.document_flags()
    opening = (
        f"You are an experienced hiring manager conducting a {_value(config.interview_type)} interview "
        f"for a {_value(config.experience_level)} {config.role} position in the {_value(config.industry)} industry."
    )
    sections = [opening + _document_context(flags), _GUIDELINES, _QUESTION_TYPES, _STYLE.format(tone=_tone(config)), _CLOSING]
    return "\n\n".join(sections)


def build_context(config: InterviewConfig, flags: DocumentFlags | None = None) -> str:  # One-line persona context
    flags = flags if flags is not None else config.document_flags()
    context = (
        f"Interviewing for: {config.role} in {_value(config.industry)}. "
        f"Candidate level: {_value(config.experience_level)}. "
        f"Interview type: {_value(config.interview_type)}."
    )
    if flags.has_documents:
        context += " Documents provided for context."
    return context


def build_greeting(config: InterviewConfig) -> str:  # Opening line spoken by the replica
    if config.category == "leetcode":
        return LEETCODE_GREETING
    return (
        "Hi there! Thanks for joining me today. I'm excited to learn more about you and your "
        f"interest in the {config.role} position. Let's get started - are you ready?"
    )


def build_persona(config: InterviewConfig) -> PersonaSpec:  # Bundle prompt, context and greeting
    flags = config.document_flags()
    return PersonaSpec(
        system_prompt=build_system_prompt(config, flags),
        context=build_context(config, flags),
        greeting=build_greeting(config),
        flags=flags,
    )


def _value(value: Optional[str]) -> str:  # Unvalidated configs may leave these unset
    return value or "unspecified"


def _tone(config: InterviewConfig) -> str:
    if config.experience_level == "entry":
        return "supportive and encouraging"
    return "professional and direct"


def _document_context(flags: DocumentFlags) -> str:
    if not flags.has_documents:
        return ""
    lines = ["", "", "DOCUMENT CONTEXT:"]
    if flags.has_resume:
        lines.append(
            "- You have access to the candidate's resume. Use it to ask specific questions "
            "about their experience and background."
        )
    if flags.has_job_description:
        lines.append(
            "- You have access to the job description. Tailor your questions to assess fit "
            "for this specific role and its requirements."
        )
    lines.append("- Reference specific details from these documents naturally in your questions")
    lines.append("- Assess how well the candidate's experience aligns with the role requirements")
    return "\n".join(lines)
