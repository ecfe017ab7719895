"""Mapping between form submissions and flat sheet rows"""

import logging
from datetime import datetime
from typing import Any, Optional

from core.models import (
    FormDefinition, FormSubmission, Row, RESERVED_COLUMNS, to_cell
)
from utils.sheet_names import parse_id

logger = logging.getLogger(__name__)

# Columns used when no form schema is active: (field id, column name)
LEGACY_COLUMNS = (
    ("name", "Name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("company", "Company"),
    ("message", "Message"),
)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"


def column_pairs(form: Optional[FormDefinition]) -> list[tuple[str, str]]:
    """(field id, column name) pairs for a schema, or the legacy set"""
    if form is None:
        return list(LEGACY_COLUMNS)
    return [(field.id, field.label) for field in form.fields]


def to_row(submission: FormSubmission, form: Optional[FormDefinition], sheet_name: str) -> Row:
    """
    Flatten a submission into a row of ``sheet_name``

    Schema columns are named by field label. A label equal to a reserved
    column name is skipped, the reserved value wins.
    """
    timestamp = submission.timestamp or datetime.now()
    columns: dict[str, str] = {}
    for field_id, column in column_pairs(form):
        if column in RESERVED_COLUMNS:
            logger.warning("Field %s uses reserved column name %s, skipping", field_id, column)
            continue
        columns[column] = to_cell(submission.data.get(field_id))

    return Row(
        id=submission.id,
        sheet_id=parse_id(sheet_name),
        form_type=submission.form_title,
        submission_date=timestamp.strftime(DATE_FORMAT),
        submission_time=timestamp.strftime(TIME_FORMAT),
        user_agent=submission.user_agent or "",
        columns=columns,
    )


def from_row(row: Row, form: Optional[FormDefinition]) -> dict[str, Any]:
    """
    Rebuild submission data (field id -> value) from a row

    Only exact for rows written under the same schema; columns of renamed
    or removed fields are not recovered.
    """
    return {field_id: row.columns.get(column, "") for field_id, column in column_pairs(form)}


def row_timestamp(row: Row) -> datetime:
    """Parse the row's submission date/time, falling back to now"""
    try:
        return datetime.strptime(
            f"{row.submission_date} {row.submission_time}", f"{DATE_FORMAT} {TIME_FORMAT}"
        )
    except ValueError:
        pass
    try:
        return datetime.strptime(row.submission_date, DATE_FORMAT)
    except ValueError:
        return datetime.now()


def row_to_submission(row: Row, form: Optional[FormDefinition]) -> FormSubmission:
    """Convert a stored row back into a submission"""
    return FormSubmission(
        id=row.id,
        form_id=form.id if form and form.id else (row.form_type or "unknown"),
        form_title=row.form_type or "Unknown Form",
        data=from_row(row, form),
        timestamp=row_timestamp(row),
        user_agent=row.user_agent or None,
    )
