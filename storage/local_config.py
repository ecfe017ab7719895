"""Local copies of the active form schema and custom Q&A"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from core.interfaces import KeyValueStorage
from core.models import FormDefinition, PredefinedResponse
from .kv import load_json, save_json

logger = logging.getLogger(__name__)

ACTIVE_FORM_KEY = "activeForm"
CUSTOM_QA_KEY = "customQA"


class LocalConfigStore:
    """Reads and writes form/Q&A configuration in key-value storage"""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def get_active_form(self) -> Optional[FormDefinition]:
        raw = load_json(self.storage, ACTIVE_FORM_KEY, None)
        if not raw:
            return None
        try:
            return FormDefinition.model_validate(raw)
        except PydanticValidationError as e:
            logger.error("Error loading active form: %s", e)
            return None

    def save_active_form(self, form: FormDefinition) -> None:
        save_json(self.storage, ACTIVE_FORM_KEY, form.model_dump(mode="json", by_alias=True))

    def get_custom_qa(self) -> list[PredefinedResponse]:
        raw = load_json(self.storage, CUSTOM_QA_KEY, [])
        if not isinstance(raw, list):
            return []
        qa_list = []
        for item in raw:
            try:
                qa_list.append(PredefinedResponse.model_validate(item))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed custom Q&A entry: %s", e)
        return qa_list

    def save_custom_qa(self, qa_list: list[PredefinedResponse]) -> None:
        save_json(
            self.storage,
            CUSTOM_QA_KEY,
            [qa.model_dump(mode="json", by_alias=True) for qa in qa_list],
        )
