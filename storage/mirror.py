"""Local spreadsheet-shaped mirror of form submissions"""

import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from core.interfaces import KeyValueStorage
from core.models import (
    FormDefinition, FormSubmission, Row, SheetMetadata, SheetStatistics,
    SHEET_METADATA_ID, to_cell
)
from utils.identifiers import generate_id, is_valid_id
from utils.sheet_names import make_name, parse_id, split_name
from .kv import load_json, save_json
from .row_mapper import DATE_FORMAT, TIME_FORMAT, to_row, row_to_submission

logger = logging.getLogger(__name__)

SHEETS_KEY = "allExcelSheets"
ACTIVE_SHEET_KEY = "currentActiveSheet"
BACKUP_KEY = "formSubmissions"
SCHEMAS_KEY = "sheetSchemas"

DEFAULT_SHEET_PREFIX = "Submissions"
LEGACY_SHEET_NAME = "Submissions_000001_History"

MAX_ID_ATTEMPTS = 50


class LocalMirrorStore:
    """
    Sheets of rows persisted in key-value storage.

    State is re-read from storage at the start of every operation and
    mutating operations write the whole sheets structure back, so several
    store objects over the same storage see each other's writes.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    # ─────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────

    def _load_sheets(self) -> dict[str, list[Row]]:
        raw = load_json(self.storage, SHEETS_KEY, {})
        if not isinstance(raw, dict):
            logger.error("Stored sheets are not a mapping, treating as empty")
            return {}

        sheets: dict[str, list[Row]] = {}
        for name, rows in raw.items():
            if not isinstance(rows, list):
                logger.warning("Sheet %s is not a row list, skipping", name)
                continue
            sheets[name] = [Row.from_flat(row) for row in rows if isinstance(row, dict)]
        return sheets

    def _save_sheets(self, sheets: dict[str, list[Row]]) -> None:
        save_json(
            self.storage,
            SHEETS_KEY,
            {name: [row.to_flat() for row in rows] for name, rows in sheets.items()},
        )

    def _resolve_active(self, sheets: dict[str, list[Row]], create: bool) -> Optional[str]:
        """
        Name of the sheet new rows go to

        A pointer to a missing sheet falls back to the first sheet, or to a
        new default sheet when there are none. With ``create`` the repaired
        pointer is persisted; the caller saves ``sheets``.
        """
        pointer = self.storage.get_item(ACTIVE_SHEET_KEY)
        if pointer and pointer in sheets:
            return pointer

        if sheets:
            fallback = next(iter(sheets))
            if pointer:
                logger.warning("Active sheet %s not found, falling back to %s", pointer, fallback)
            if create:
                self.storage.set_item(ACTIVE_SHEET_KEY, fallback)
            return fallback

        if not create:
            return None

        name = self._new_sheet_name(DEFAULT_SHEET_PREFIX, sheets)
        sheets[name] = []
        self.storage.set_item(ACTIVE_SHEET_KEY, name)
        logger.info("Created default sheet %s", name)
        return name

    def _new_sheet_name(self, title: str, sheets: dict[str, list[Row]]) -> str:
        taken = {parse_id(name) for name in sheets}
        name = make_name(title, generate_id())
        for _ in range(MAX_ID_ATTEMPTS):
            if parse_id(name) not in taken and name not in sheets:
                break
            name = make_name(title, generate_id())
        return name

    def _record_schema(self, sheet_name: str, form: Optional[FormDefinition], replace: bool = True) -> None:
        """Remember the schema rows of a sheet are written under (None for legacy columns)"""
        schemas = load_json(self.storage, SCHEMAS_KEY, {})
        if not isinstance(schemas, dict):
            schemas = {}
        if not replace and sheet_name in schemas:
            return
        schemas[sheet_name] = form.model_dump(mode="json", by_alias=True) if form else None
        save_json(self.storage, SCHEMAS_KEY, schemas)

    @staticmethod
    def _row_ids(sheets: dict[str, list[Row]]) -> set[str]:
        return {row.id for rows in sheets.values() for row in rows}

    def _unique_row_id(self, sheets: dict[str, list[Row]], preferred: str = "") -> str:
        taken = self._row_ids(sheets)
        if is_valid_id(preferred) and preferred not in taken:
            return preferred
        row_id = generate_id()
        for _ in range(MAX_ID_ATTEMPTS):
            if row_id not in taken:
                break
            row_id = generate_id()
        return row_id

    # ─────────────────────────────────────────────────────────
    # Sheets
    # ─────────────────────────────────────────────────────────

    def get_sheets(self) -> dict[str, list[Row]]:
        """All sheets with their rows, in creation order"""
        return self._load_sheets()

    def get_rows(self, sheet_name: str) -> Optional[list[Row]]:
        return self._load_sheets().get(sheet_name)

    def active_sheet(self) -> Optional[str]:
        """Resolved active sheet, None when the mirror is empty"""
        return self._resolve_active(self._load_sheets(), create=False)

    def create_sheet_for_schema(self, form: Optional[FormDefinition]) -> str:
        """
        Start a new empty sheet for a form configuration and make it active

        Existing sheets and their rows are kept.
        """
        sheets = self._load_sheets()
        title = form.title if form else DEFAULT_SHEET_PREFIX
        name = self._new_sheet_name(title, sheets)
        sheets[name] = []
        self._save_sheets(sheets)
        self._record_schema(name, form)
        self.storage.set_item(ACTIVE_SHEET_KEY, name)
        logger.info("Created new sheet: %s (ID: %s) for form: %s", name, parse_id(name), title)
        return name

    def sheet_schema(self, sheet_name: str) -> tuple[bool, Optional[FormDefinition]]:
        """
        Schema the rows of a sheet were written under

        Returns:
            (known, form): ``known`` is False when the sheet predates schema
            tracking or the stored schema is unreadable; ``form`` is None
            for sheets using the legacy columns
        """
        schemas = load_json(self.storage, SCHEMAS_KEY, {})
        if not isinstance(schemas, dict) or sheet_name not in schemas:
            return False, None
        raw = schemas[sheet_name]
        if raw is None:
            return True, None
        try:
            return True, FormDefinition.model_validate(raw)
        except PydanticValidationError as e:
            logger.error("Stored schema of sheet %s is invalid: %s", sheet_name, e)
            return False, None

    def find_sheet_by_id(self, sheet_id: str) -> Optional[str]:
        if not is_valid_id(sheet_id):
            return None
        for name in self._load_sheets():
            if parse_id(name) == sheet_id:
                return name
        return None

    def list_sheet_metadata(self) -> list[SheetMetadata]:
        """Sheet summaries: active sheet first, then by date descending"""
        sheets = self._load_sheets()
        active = self._resolve_active(sheets, create=False)

        metadata = []
        for name, rows in sheets.items():
            prefix, day = split_name(name)
            metadata.append(SheetMetadata(
                name=name,
                sheet_id=parse_id(name),
                form_name_prefix=prefix,
                date=day,
                row_count=len(rows),
                is_active=name == active,
            ))

        metadata.sort(key=lambda m: m.date, reverse=True)
        metadata.sort(key=lambda m: not m.is_active)
        return metadata

    # ─────────────────────────────────────────────────────────
    # Rows
    # ─────────────────────────────────────────────────────────

    def append_submission(self, submission: FormSubmission, form: Optional[FormDefinition]) -> Row:
        """
        Append a submission to the active sheet

        The row keeps ``submission.id`` when it is a free 6-digit id,
        otherwise a new one is generated. The submission is also appended
        to the backup list.

        Returns:
            The stored row (its ``id`` is the row identifier)
        """
        sheets = self._load_sheets()
        sheet_name = self._resolve_active(sheets, create=True)

        row_id = self._unique_row_id(sheets, submission.id)
        stored = submission.model_copy(update={"id": row_id})
        row = to_row(stored, form, sheet_name)

        sheets[sheet_name].append(row)
        self._save_sheets(sheets)
        self._record_schema(sheet_name, form, replace=False)
        self._append_backup(stored)

        logger.info("Form submission %s saved to sheet: %s (ID: %s)", row_id, sheet_name, row.sheet_id)
        return row

    def get_row(self, row_id: str) -> Optional[Row]:
        located = self.locate_row(row_id)
        return located[1] if located else None

    def locate_row(self, row_id: str) -> Optional[tuple[str, Row]]:
        """(sheet name, row) of the first row with this ID"""
        for name, rows in self._load_sheets().items():
            for row in rows:
                if row.id == row_id:
                    return name, row
        return None

    def modify_row_by_id(self, row_id: str, updates: dict[str, Any]) -> bool:
        """
        Merge ``updates`` into the row with this ID, in any sheet

        The ``ID`` column itself cannot be changed. Modification date and
        time are stamped on the row.

        Returns:
            True if a row was found and updated
        """
        if row_id == SHEET_METADATA_ID:
            return False

        changes = {str(k): to_cell(v) for k, v in updates.items() if k != "ID"}
        now = datetime.now()
        changes["Modified_Date"] = now.strftime(DATE_FORMAT)
        changes["Modified_Time"] = now.strftime(TIME_FORMAT)

        sheets = self._load_sheets()
        found = False
        for rows in sheets.values():
            for index, row in enumerate(rows):
                if row.id == row_id:
                    flat = row.to_flat()
                    flat.update(changes)
                    rows[index] = Row.from_flat(flat)
                    found = True

        if not found:
            logger.warning("Submission %s not found", row_id)
            return False

        self._save_sheets(sheets)
        logger.info("Submission %s updated successfully", row_id)
        return True

    def delete_row_by_id(self, row_id: str) -> bool:
        """
        Remove the row with this ID from whichever sheet holds it

        Returns:
            True if a row was found and removed
        """
        if row_id == SHEET_METADATA_ID:
            return False

        sheets = self._load_sheets()
        found = False
        for name, rows in sheets.items():
            kept = [row for row in rows if row.id != row_id]
            if len(kept) != len(rows):
                sheets[name] = kept
                found = True

        if not found:
            logger.warning("Submission %s not found", row_id)
            return False

        self._save_sheets(sheets)
        logger.info("Submission %s deleted successfully", row_id)
        return True

    # ─────────────────────────────────────────────────────────
    # Backup list
    # ─────────────────────────────────────────────────────────

    def load_backup(self) -> list[FormSubmission]:
        raw = load_json(self.storage, BACKUP_KEY, [])
        if not isinstance(raw, list):
            return []
        submissions = []
        for item in raw:
            try:
                submissions.append(FormSubmission.model_validate(item))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed backup submission: %s", e)
        return submissions

    def _append_backup(self, submission: FormSubmission) -> None:
        raw = load_json(self.storage, BACKUP_KEY, [])
        if not isinstance(raw, list):
            raw = []
        raw.append(submission.model_dump(mode="json", by_alias=True))
        save_json(self.storage, BACKUP_KEY, raw)

    def restore_from_backup(self) -> Optional[str]:
        """
        Rebuild a legacy history sheet from the backup list

        Only runs when the mirror holds no sheets at all.

        Returns:
            Name of the restored sheet, or None if nothing was restored
        """
        sheets = self._load_sheets()
        if sheets:
            return None
        backup = self.load_backup()
        if not backup:
            return None

        rows = []
        for submission in backup:
            if not submission.id:
                submission = submission.model_copy(update={"id": generate_id()})
            rows.append(to_row(submission, None, LEGACY_SHEET_NAME))
        sheets[LEGACY_SHEET_NAME] = rows
        self._save_sheets(sheets)
        self._record_schema(LEGACY_SHEET_NAME, None)
        logger.info("Restored %d submissions from backup into %s", len(rows), LEGACY_SHEET_NAME)
        return LEGACY_SHEET_NAME

    # ─────────────────────────────────────────────────────────
    # Views
    # ─────────────────────────────────────────────────────────

    def load_active_submissions(self, form: Optional[FormDefinition]) -> list[FormSubmission]:
        """
        Submissions of the active sheet, or the backup list when there is none

        Rows are mapped through the sheet's recorded schema; ``form`` is
        used for sheets without one.
        """
        sheets = self._load_sheets()
        active = self._resolve_active(sheets, create=False)
        if active is not None:
            known, recorded = self.sheet_schema(active)
            schema = recorded if known else form
            return [row_to_submission(row, schema) for row in sheets[active] if not row.is_metadata]
        return self.load_backup()

    def sheet_content(self) -> dict:
        """Admin view of the mirror: all sheets, active sheet and metadata"""
        self.restore_from_backup()
        sheets = self._load_sheets()
        return {
            "sheets": {name: [row.to_flat() for row in rows] for name, rows in sheets.items()},
            "active_sheet": self._resolve_active(sheets, create=False),
            "metadata": self.list_sheet_metadata(),
        }

    def statistics(self, form: Optional[FormDefinition]) -> SheetStatistics:
        sheets = self._load_sheets()
        active = self._resolve_active(sheets, create=False)
        return SheetStatistics(
            total_sheets=len(sheets),
            current_active_sheet=active,
            current_active_sheet_id=parse_id(active) if active else "",
            current_form_title=form.title if form else "No Form",
            current_form_id=form.id if form and form.id else "N/A",
            sheets_info=self.list_sheet_metadata(),
        )
