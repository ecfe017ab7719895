"""Abstract base classes for form mirror components"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import FormDefinition, FormSubmission, PredefinedResponse


class KeyValueStorage(ABC):
    """String-valued key-value persistence (browser localStorage analogue)"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string or None"""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a string value, raising StorageError when it cannot be written"""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key if present"""
        pass


class RemoteStore(ABC):
    """
    Authoritative remote store for submissions and configuration.

    Every method raises RemoteStoreError on any failure, including timeouts.
    """

    @abstractmethod
    async def save_submission(self, submission: FormSubmission) -> None:
        pass

    @abstractmethod
    async def load_submissions(self) -> list[FormSubmission]:
        pass

    @abstractmethod
    async def update_submission(self, submission_id: str, data: dict) -> None:
        pass

    @abstractmethod
    async def delete_submission(self, submission_id: str) -> None:
        pass

    @abstractmethod
    async def load_active_form(self) -> Optional[FormDefinition]:
        pass

    @abstractmethod
    async def save_form_configuration(self, form: FormDefinition) -> None:
        pass

    @abstractmethod
    async def load_custom_qa(self) -> list[PredefinedResponse]:
        pass

    @abstractmethod
    async def save_custom_qa(self, qa_list: list[PredefinedResponse]) -> None:
        pass

    @abstractmethod
    async def submission_stats(self) -> dict:
        pass
