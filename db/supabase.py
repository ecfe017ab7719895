"""Supabase-backed remote store"""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from supabase import create_client, Client

from core.exceptions import RemoteStoreError
from core.interfaces import RemoteStore
from core.models import FormDefinition, FormSubmission, PredefinedResponse
from config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

FORM_CONFIGURATIONS_TABLE = "form_configurations"
FORM_SUBMISSIONS_TABLE = "form_submissions"
CUSTOM_QA_TABLE = "custom_qa"
APP_SETTINGS_TABLE = "app_settings"


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse a Postgres ISO timestamp as naive local time, falling back to now"""
    if not value:
        return datetime.now()
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class SupabaseRemoteStore(RemoteStore):
    """
    Remote store over the Supabase tables

    The Supabase Python client is synchronous, so each request runs in a
    worker thread and is abandoned after ``timeout`` seconds.
    """

    def __init__(self, client: Client, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout if timeout is not None else default_settings.REMOTE_TIMEOUT_SECONDS

    async def _run(self, operation: str, request: Callable[[], Any]) -> Any:
        try:
            res = await asyncio.wait_for(asyncio.to_thread(request), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteStoreError(f"{operation} timed out after {self.timeout}s", operation) from e
        except Exception as e:
            raise RemoteStoreError(f"{operation} failed: {e}", operation) from e

        err = getattr(res, "error", None)
        if err:
            raise RemoteStoreError(f"{operation} error: {err}", operation)
        return res

    # ─────────────────────────────────────────────────────────
    # Submissions
    # ─────────────────────────────────────────────────────────

    async def save_submission(self, submission: FormSubmission) -> None:
        record = {
            "id": submission.id,
            "form_id": submission.form_id,
            "form_title": submission.form_title,
            "submission_data": submission.data,
            "user_agent": submission.user_agent,
        }
        await self._run(
            "save_submission",
            lambda: self.client.table(FORM_SUBMISSIONS_TABLE).insert(record).execute(),
        )
        logger.info("Form submission saved remotely with ID: %s", submission.id)

    async def load_submissions(self) -> list[FormSubmission]:
        res = await self._run(
            "load_submissions",
            lambda: self.client.table(FORM_SUBMISSIONS_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .execute(),
        )
        return [
            FormSubmission(
                id=record["id"],
                form_id=record.get("form_id") or "unknown",
                form_title=record.get("form_title") or "",
                data=record.get("submission_data") or {},
                timestamp=parse_timestamp(record.get("created_at")),
                user_agent=record.get("user_agent"),
            )
            for record in (res.data or [])
        ]

    async def update_submission(self, submission_id: str, data: dict) -> None:
        updates = {
            "submission_data": data,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        await self._run(
            "update_submission",
            lambda: self.client.table(FORM_SUBMISSIONS_TABLE)
            .update(updates)
            .eq("id", submission_id)
            .execute(),
        )

    async def delete_submission(self, submission_id: str) -> None:
        await self._run(
            "delete_submission",
            lambda: self.client.table(FORM_SUBMISSIONS_TABLE)
            .delete()
            .eq("id", submission_id)
            .execute(),
        )

    # ─────────────────────────────────────────────────────────
    # Form configuration
    # ─────────────────────────────────────────────────────────

    async def load_active_form(self) -> Optional[FormDefinition]:
        res = await self._run(
            "load_active_form",
            lambda: self.client.table(FORM_CONFIGURATIONS_TABLE)
            .select("*")
            .eq("is_active", True)
            .limit(1)
            .execute(),
        )
        if not res.data:
            return None
        record = res.data[0]
        return FormDefinition(
            id=record["form_id"],
            title=record.get("title") or "",
            description=record.get("description"),
            fields=record.get("fields") or [],
            submit_text=record.get("submit_text"),
        )

    async def save_form_configuration(self, form: FormDefinition) -> None:
        record = {
            "form_id": form.id,
            "title": form.title,
            "description": form.description,
            "fields": [field.model_dump(mode="json") for field in form.fields],
            "submit_text": form.submit_text,
            "is_active": True,
        }

        # Only one configuration is active at a time
        await self._run(
            "deactivate_forms",
            lambda: self.client.table(FORM_CONFIGURATIONS_TABLE)
            .update({"is_active": False})
            .neq("form_id", form.id)
            .execute(),
        )
        await self._run(
            "save_form_configuration",
            lambda: self.client.table(FORM_CONFIGURATIONS_TABLE)
            .upsert(record, on_conflict="form_id")
            .execute(),
        )
        logger.info("Form configuration saved remotely with ID: %s", form.id)

    # ─────────────────────────────────────────────────────────
    # Custom Q&A
    # ─────────────────────────────────────────────────────────

    async def load_custom_qa(self) -> list[PredefinedResponse]:
        res = await self._run(
            "load_custom_qa",
            lambda: self.client.table(CUSTOM_QA_TABLE)
            .select("*")
            .eq("is_active", True)
            .order("created_at", desc=True)
            .execute(),
        )
        return [
            PredefinedResponse(
                id=record["id"],
                trigger=record.get("question_keywords") or [],
                response=record.get("response_text") or "",
                category=record.get("category") or "custom",
                is_form=bool(record.get("is_form")),
                form_data=FormDefinition(id=record["form_id"], title=record["form_id"])
                if record.get("form_id") else None,
            )
            for record in (res.data or [])
        ]

    async def save_custom_qa(self, qa_list: list[PredefinedResponse]) -> None:
        records = [
            {
                "id": qa.id,
                "question_keywords": qa.trigger,
                "response_text": qa.response,
                "category": qa.category,
                "is_form": qa.is_form,
                "form_id": qa.form_data.id if qa.form_data else None,
                "is_active": True,
            }
            for qa in qa_list
        ]

        await self._run(
            "deactivate_custom_qa",
            lambda: self.client.table(CUSTOM_QA_TABLE)
            .update({"is_active": False})
            .eq("is_active", True)
            .execute(),
        )
        if records:
            await self._run(
                "save_custom_qa",
                lambda: self.client.table(CUSTOM_QA_TABLE).upsert(records).execute(),
            )
        logger.info("Custom Q&A saved remotely (%d entries)", len(records))

    # ─────────────────────────────────────────────────────────
    # Statistics
    # ─────────────────────────────────────────────────────────

    async def submission_stats(self) -> dict:
        """
        Submission counts for the admin dashboard

        Returns:
            Dictionary with total, per-form-title and last-7-days counts
        """
        res = await self._run(
            "submission_stats",
            lambda: self.client.table(FORM_SUBMISSIONS_TABLE)
            .select("form_title,created_at", count="exact")
            .order("created_at", desc=True)
            .execute(),
        )
        records = res.data or []
        total = res.count if res.count is not None else len(records)

        today = datetime.now().date()
        last_7_days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
        per_day = Counter(
            parse_timestamp(r.get("created_at")).date() for r in records
        )

        return {
            "total_submissions": total,
            "form_type_count": dict(Counter(r.get("form_title") or "" for r in records)),
            "daily_submissions": [
                {"date": day.isoformat(), "count": per_day.get(day, 0)} for day in last_7_days
            ],
            "average_per_day": round(total / 7, 1),
        }

    async def test_connection(self) -> bool:
        """Check that the app_settings table is reachable"""
        try:
            await self._run(
                "test_connection",
                lambda: self.client.table(APP_SETTINGS_TABLE)
                .select("id", count="exact")
                .limit(1)
                .execute(),
            )
            return True
        except RemoteStoreError as e:
            logger.warning("Supabase connection test failed: %s", e)
            return False


def create_remote_store(config: Optional[Settings] = None) -> Optional[SupabaseRemoteStore]:
    """
    Build the Supabase remote store from settings

    Returns:
        The store, or None when Supabase is not configured or the client
        cannot be created (the app then runs local-only)
    """
    config = config or default_settings
    if not config.remote_configured():
        logger.warning("Supabase not configured, running with the local mirror only")
        return None
    try:
        client = create_client(config.SUPABASE_URL, config.supabase_key())
    except Exception as e:
        logger.warning("Failed to initialize Supabase client: %s", e)
        return None
    return SupabaseRemoteStore(client, timeout=config.REMOTE_TIMEOUT_SECONDS)
