"""Prompts package."""

from knowhub.core.prompts.answer import (
    ANSWER_PROMPT,
    ANSWER_SYSTEM_PROMPT,
    build_answer_messages,
    generate_contextual_actions,
)

__all__ = [
    "ANSWER_PROMPT",
    "ANSWER_SYSTEM_PROMPT",
    "build_answer_messages",
    "generate_contextual_actions",
]
