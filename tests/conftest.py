import asyncio
from typing import Optional

import pytest

from core.exceptions import RemoteStoreError
from core.interfaces import RemoteStore
from core.models import FormDefinition, FormField, FormSubmission, PredefinedResponse
from services import FormDataService
from storage import LocalMirrorStore, MemoryStorage


class FakeRemoteStore(RemoteStore):
    """Remote store keeping records in memory; can be switched to fail or hang"""

    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.fail = fail
        self.delay = delay
        self.submissions: dict[str, FormSubmission] = {}
        self.forms: list[FormDefinition] = []
        self.custom_qa: list[PredefinedResponse] = []
        self.calls: list[str] = []

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RemoteStoreError(f"{operation} failed: connection refused", operation)

    async def save_submission(self, submission: FormSubmission) -> None:
        await self._enter("save_submission")
        self.submissions[submission.id] = submission

    async def load_submissions(self) -> list[FormSubmission]:
        await self._enter("load_submissions")
        return list(self.submissions.values())

    async def update_submission(self, submission_id: str, data: dict) -> None:
        await self._enter("update_submission")
        self.submissions[submission_id] = self.submissions[submission_id].model_copy(update={"data": data})

    async def delete_submission(self, submission_id: str) -> None:
        await self._enter("delete_submission")
        self.submissions.pop(submission_id, None)

    async def load_active_form(self) -> Optional[FormDefinition]:
        await self._enter("load_active_form")
        return self.forms[-1] if self.forms else None

    async def save_form_configuration(self, form: FormDefinition) -> None:
        await self._enter("save_form_configuration")
        self.forms.append(form)

    async def load_custom_qa(self) -> list[PredefinedResponse]:
        await self._enter("load_custom_qa")
        return list(self.custom_qa)

    async def save_custom_qa(self, qa_list: list[PredefinedResponse]) -> None:
        await self._enter("save_custom_qa")
        self.custom_qa = list(qa_list)

    async def submission_stats(self) -> dict:
        await self._enter("submission_stats")
        return {"total_submissions": len(self.submissions), "form_type_count": {}}


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def mirror(storage: MemoryStorage) -> LocalMirrorStore:
    return LocalMirrorStore(storage)


@pytest.fixture
def email_form() -> FormDefinition:
    return FormDefinition(
        id="form_100001",
        title="Newsletter Signup",
        fields=[FormField(id="email", type="email", label="Email Address", required=True)],
    )


@pytest.fixture
def contact_form() -> FormDefinition:
    return FormDefinition(
        id="contact",
        title="Contact Information",
        fields=[
            FormField(id="firstName", label="First Name", required=True),
            FormField(id="email", type="email", label="Email Address", required=True),
            FormField(id="company", label="Company"),
        ],
    )


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def service(storage: MemoryStorage, remote: FakeRemoteStore) -> FormDataService:
    return FormDataService(storage, remote, remote_timeout=1.0)


def make_submission(data: dict, title: str = "Contact Information", **kwargs) -> FormSubmission:
    return FormSubmission(form_id="contact", form_title=title, data=data, user_agent="pytest", **kwargs)
