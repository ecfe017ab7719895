"""Keyword chat responder"""

from .responder import ChatResponder, ChatReply, find_response
from .templates import FORM_TEMPLATES, PREDEFINED_RESPONSES

__all__ = [
    "ChatResponder",
    "ChatReply",
    "find_response",
    "FORM_TEMPLATES",
    "PREDEFINED_RESPONSES",
]
