"""Keyword-matching chat responder"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.models import FormDefinition, PredefinedResponse
from .templates import PREDEFINED_RESPONSES, FALLBACK_RESPONSES

logger = logging.getLogger(__name__)


@dataclass
class ChatReply:
    """Text sent back to the user and the entry that produced it"""
    text: str
    matched: Optional[PredefinedResponse] = None

    @property
    def form(self) -> Optional[FormDefinition]:
        """Form to display with the reply, if the matched entry carries one"""
        if self.matched and self.matched.is_form:
            return self.matched.form_data
        return None


def find_response(message: str, responses: list[PredefinedResponse]) -> Optional[PredefinedResponse]:
    """First response with a trigger contained in the message (case-insensitive)"""
    lower_message = message.lower()
    for response in responses:
        for trigger in response.trigger:
            if trigger and trigger.lower() in lower_message:
                return response
    return None


def render(text: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return (
        text.replace("{time}", now.strftime("%H:%M:%S"))
        .replace("{date}", now.strftime("%A, %B %d, %Y"))
    )


class ChatResponder:
    """Answers messages from custom Q&A first, then predefined responses"""

    def __init__(
        self,
        custom_qa: Optional[list[PredefinedResponse]] = None,
        predefined: Optional[list[PredefinedResponse]] = None
    ):
        self.custom_qa = list(custom_qa or [])
        self.predefined = list(PREDEFINED_RESPONSES if predefined is None else predefined)
        self.last_match: Optional[PredefinedResponse] = None

    def set_custom_qa(self, custom_qa: list[PredefinedResponse]) -> None:
        self.custom_qa = list(custom_qa)

    def respond(self, message: str) -> ChatReply:
        matched = find_response(message, self.custom_qa)
        if matched:
            logger.debug("Found custom Q&A match: %s", matched.id)
        else:
            matched = find_response(message, self.predefined)

        self.last_match = matched
        if matched:
            return ChatReply(text=render(matched.response), matched=matched)
        return ChatReply(text=random.choice(FALLBACK_RESPONSES))
