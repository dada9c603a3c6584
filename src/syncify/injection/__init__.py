"""Context composition and chat-input injection."""

from syncify.injection.composer import generate_context_text
from syncify.injection.inputs import inject_into_input, is_new_message_input
from syncify.injection.models import ContextProfile, Fact, InputElement

__all__ = [
    "generate_context_text",
    "inject_into_input",
    "is_new_message_input",
    "ContextProfile",
    "Fact",
    "InputElement",
]
