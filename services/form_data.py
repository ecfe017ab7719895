"""Dual-write coordination between the local mirror and the remote store"""

import asyncio
import logging
from collections import Counter
from typing import Awaitable, Callable, Optional

from core.enums import Persistence
from core.exceptions import RemoteStoreError, ValidationError
from core.interfaces import KeyValueStorage, RemoteStore
from core.models import (
    FormDefinition, FormLoadResult, FormSubmission, LoadResult,
    PersistResult, PredefinedResponse, SheetStatistics
)
from export.workbook import build_workbook
from storage.local_config import LocalConfigStore
from storage.mirror import LocalMirrorStore
from storage.row_mapper import from_row
from utils.identifiers import generate_id
from config import settings

logger = logging.getLogger(__name__)

PLACEHOLDER_FORM_ID = "custom-form"
REMOTE_NOT_CONFIGURED = "Remote store not configured"


class FormDataService:
    """
    Form data operations over the local mirror and an optional remote store

    Writes always land in the mirror first and are then attempted remotely;
    reads prefer the remote store and fall back to the mirror. Results are
    tagged ``remote`` or ``local-only`` so callers can tell the user the
    data is not yet synced.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        remote: Optional[RemoteStore] = None,
        remote_timeout: Optional[float] = None
    ):
        self.mirror = LocalMirrorStore(storage)
        self.config_store = LocalConfigStore(storage)
        self.remote = remote
        self.remote_timeout = remote_timeout if remote_timeout is not None else settings.REMOTE_TIMEOUT_SECONDS

    async def _remote_call(self, operation: str, call: Callable[[], Awaitable]) -> tuple[bool, object, Optional[str]]:
        """Run a remote call; returns (ok, value, error message)"""
        if self.remote is None:
            return False, None, REMOTE_NOT_CONFIGURED
        try:
            return True, await asyncio.wait_for(call(), timeout=self.remote_timeout), None
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %ss, using local data only", operation, self.remote_timeout)
            return False, None, f"{operation} timed out"
        except RemoteStoreError as e:
            logger.warning("%s failed remotely, using local data only: %s", operation, e)
            return False, None, str(e)
        except Exception as e:
            logger.exception("Unexpected error in remote %s", operation)
            return False, None, str(e)

    @staticmethod
    def _persistence(ok: bool) -> Persistence:
        return Persistence.REMOTE if ok else Persistence.LOCAL_ONLY

    # ─────────────────────────────────────────────────────────
    # Submissions
    # ─────────────────────────────────────────────────────────

    def validate_submission(self, data: dict) -> Optional[FormDefinition]:
        """
        Check submitted data against the active form

        Returns:
            The active form, or None when no form is configured

        Raises:
            ValidationError: With field id -> message errors
        """
        form = self.config_store.get_active_form()
        if form is None:
            return None
        errors = form.validate_data(data)
        if errors:
            raise ValidationError(f"{len(errors)} field(s) failed validation", errors)
        return form

    async def save_submission(self, submission: FormSubmission) -> PersistResult:
        """Append a submission to the active sheet, then send it to the remote store"""
        form = self.config_store.get_active_form()
        row = self.mirror.append_submission(submission, form)
        located = self.mirror.locate_row(row.id)
        stored = submission.model_copy(update={"id": row.id})

        ok, _, error = await self._remote_call(
            "save_submission", lambda: self.remote.save_submission(stored)
        )
        return PersistResult(
            persisted=self._persistence(ok),
            row_id=row.id,
            sheet_name=located[0] if located else None,
            error=error,
        )

    async def load_submissions(self) -> LoadResult:
        """All remote submissions, or the active sheet's submissions when offline"""
        ok, submissions, error = await self._remote_call(
            "load_submissions", lambda: self.remote.load_submissions()
        )
        if ok:
            return LoadResult(source=Persistence.REMOTE, items=submissions)

        form = self.config_store.get_active_form()
        return LoadResult(
            source=Persistence.LOCAL_ONLY,
            items=self.mirror.load_active_submissions(form),
            error=error,
        )

    async def modify_submission(self, submission_id: str, updates: dict) -> PersistResult:
        """
        Update a row by ID in any sheet and push its data to the remote store

        ``updates`` is keyed by column name (field label or reserved column).
        The remote data is rebuilt through the schema of the row's own
        sheet; when that schema is unknown the remote copy is left alone.
        """
        if not self.mirror.modify_row_by_id(submission_id, updates):
            return PersistResult(persisted=Persistence.LOCAL_ONLY, found=False, row_id=submission_id)

        sheet_name, row = self.mirror.locate_row(submission_id)
        known, form = self.mirror.sheet_schema(sheet_name)
        if not known:
            logger.warning("Schema of sheet %s is unknown, submission %s not updated remotely",
                           sheet_name, submission_id)
            return PersistResult(
                persisted=Persistence.LOCAL_ONLY,
                row_id=submission_id,
                sheet_name=sheet_name,
                error=f"Schema of sheet {sheet_name} unknown, remote copy not updated",
            )

        data = from_row(row, form)
        ok, _, error = await self._remote_call(
            "update_submission", lambda: self.remote.update_submission(submission_id, data)
        )
        return PersistResult(
            persisted=self._persistence(ok),
            row_id=submission_id,
            sheet_name=sheet_name,
            error=error,
        )

    async def delete_submission(self, submission_id: str) -> PersistResult:
        """Delete a row by ID from any sheet and from the remote store"""
        if not self.mirror.delete_row_by_id(submission_id):
            return PersistResult(persisted=Persistence.LOCAL_ONLY, found=False, row_id=submission_id)

        ok, _, error = await self._remote_call(
            "delete_submission", lambda: self.remote.delete_submission(submission_id)
        )
        return PersistResult(persisted=self._persistence(ok), row_id=submission_id, error=error)

    # ─────────────────────────────────────────────────────────
    # Form configuration
    # ─────────────────────────────────────────────────────────

    async def load_active_form(self) -> FormLoadResult:
        ok, form, error = await self._remote_call(
            "load_active_form", lambda: self.remote.load_active_form()
        )
        if ok:
            return FormLoadResult(source=Persistence.REMOTE, form=form)
        return FormLoadResult(
            source=Persistence.LOCAL_ONLY,
            form=self.config_store.get_active_form(),
            error=error,
        )

    async def save_form_configuration(self, form: FormDefinition) -> PersistResult:
        """
        Activate a form configuration

        Forms without an id (or with the placeholder id) get ``form_{id}``.
        A new sheet is started for the configuration and made active.
        """
        if not form.id or form.id == PLACEHOLDER_FORM_ID:
            form = form.model_copy(update={"id": f"form_{generate_id()}"})

        self.config_store.save_active_form(form)
        sheet_name = self.mirror.create_sheet_for_schema(form)
        logger.info("Form configuration saved with ID: %s and new sheet created: %s", form.id, sheet_name)

        ok, _, error = await self._remote_call(
            "save_form_configuration", lambda: self.remote.save_form_configuration(form)
        )
        return PersistResult(
            persisted=self._persistence(ok),
            form_id=form.id,
            sheet_name=sheet_name,
            error=error,
        )

    # ─────────────────────────────────────────────────────────
    # Custom Q&A
    # ─────────────────────────────────────────────────────────

    async def load_custom_qa(self) -> LoadResult:
        """Active custom Q&A; a successful remote load refreshes the local copy"""
        ok, qa_list, error = await self._remote_call(
            "load_custom_qa", lambda: self.remote.load_custom_qa()
        )
        if ok:
            self.config_store.save_custom_qa(qa_list)
            return LoadResult(source=Persistence.REMOTE, items=qa_list)
        return LoadResult(
            source=Persistence.LOCAL_ONLY,
            items=self.config_store.get_custom_qa(),
            error=error,
        )

    async def save_custom_qa(self, qa_list: list[PredefinedResponse]) -> PersistResult:
        qa_with_ids = [
            qa if qa.id else qa.model_copy(update={"id": f"qa_{generate_id()}"})
            for qa in qa_list
        ]
        self.config_store.save_custom_qa(qa_with_ids)

        ok, _, error = await self._remote_call(
            "save_custom_qa", lambda: self.remote.save_custom_qa(qa_with_ids)
        )
        return PersistResult(persisted=self._persistence(ok), error=error)

    # ─────────────────────────────────────────────────────────
    # Admin views
    # ─────────────────────────────────────────────────────────

    def sheet_statistics(self) -> SheetStatistics:
        return self.mirror.statistics(self.config_store.get_active_form())

    async def submission_stats(self) -> dict:
        """Remote submission statistics, or counts over the local mirror"""
        ok, stats, error = await self._remote_call(
            "submission_stats", lambda: self.remote.submission_stats()
        )
        if ok:
            return {**stats, "source": Persistence.REMOTE.value}

        rows = [row for rows in self.mirror.get_sheets().values() for row in rows]
        return {
            "total_submissions": len(rows),
            "form_type_count": dict(Counter(row.form_type for row in rows)),
            "source": Persistence.LOCAL_ONLY.value,
            "error": error,
        }

    def export_workbook(self) -> bytes:
        """Workbook of all mirror sheets"""
        return build_workbook(self.mirror.get_sheets())
