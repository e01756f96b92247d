"""Prompt envelope assembly for the Gemini ``contents`` array."""

from collections.abc import Sequence

from novachat.configs.system import PromptConfig

from .models import (
    MODEL_ROLE_MODEL,
    MODEL_ROLE_USER,
    Message,
    PromptEnvelope,
    PromptSegment,
    to_model_role,
)


def build_preamble(system_prompt: str, config: PromptConfig) -> tuple[PromptSegment, ...]:
    """Return the scripted opening exchange that carries the system prompt.

    Gemini's ``contents`` has no system role, so the prompt travels as a
    user turn followed by a canned model acknowledgment.
    """
    return (
        PromptSegment(MODEL_ROLE_USER, system_prompt + config.lead_in),
        PromptSegment(MODEL_ROLE_MODEL, config.acknowledgment),
    )


def build_envelope(
    system_prompt: str,
    history: Sequence[Message],
    user_message: str,
    config: PromptConfig | None = None,
) -> PromptEnvelope:
    """Assemble preamble, *history* and *user_message* in order.

    Roles are projected one-to-one; adjacent turns with the same role
    are passed through as they are.
    """
    if config is None:
        config = PromptConfig()
    segments = [
        *build_preamble(system_prompt, config),
        *(PromptSegment(to_model_role(m.role), m.content) for m in history),
        PromptSegment(MODEL_ROLE_USER, user_message),
    ]
    return PromptEnvelope(tuple(segments))
