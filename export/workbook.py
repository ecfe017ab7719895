"""Materialize the local mirror as an .xlsx workbook"""

import io
import re
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from core.models import Row, SHEET_METADATA_ID
from utils.sheet_names import parse_id

MAX_SHEET_TITLE_LENGTH = 31
PLACEHOLDER_SHEET_TITLE = "No_Data"
MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 50

_INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")


def export_filename(day: Optional[date] = None) -> str:
    """Download name of the mirror workbook"""
    day = day or date.today()
    return f"form_submissions_with_ids_{day.isoformat()}.xlsx"


def sheet_title(name: str, used: Iterable[str] = ()) -> str:
    """
    Tab title for a sheet name

    Characters Excel rejects are replaced and the title is cut to 31
    characters; a numeric suffix keeps it unique among ``used``.
    """
    title = _INVALID_TITLE_CHARS.sub("_", name)[:MAX_SHEET_TITLE_LENGTH] or "Sheet"
    taken = {t.lower() for t in used}
    candidate = title
    counter = 1
    while candidate.lower() in taken:
        suffix = f"_{counter}"
        candidate = title[:MAX_SHEET_TITLE_LENGTH - len(suffix)] + suffix
        counter += 1
    return candidate


def metadata_row(sheet_name: str, generated_at: Optional[datetime] = None) -> Row:
    """Synthetic header row describing a sheet in an export"""
    generated_at = generated_at or datetime.now()
    sheet_id = parse_id(sheet_name)
    return Row(
        id=SHEET_METADATA_ID,
        sheet_id=sheet_id,
        form_type=f"Sheet: {sheet_name}",
        submission_date=generated_at.strftime("%Y-%m-%d"),
        submission_time=generated_at.strftime("%H:%M:%S"),
        user_agent=f"Sheet ID: {sheet_id} | Generated: {generated_at.isoformat()}",
    )


def write_records(worksheet: Worksheet, records: list[dict]) -> None:
    """Write dict records as a header row plus one row per record"""
    headers: list[str] = []
    for record in records:
        for key in record:
            if key not in headers:
                headers.append(key)

    worksheet.append(headers)
    for record in records:
        worksheet.append([record.get(header) for header in headers])
    autosize_columns(worksheet)


def autosize_columns(worksheet: Worksheet) -> None:
    """Fit column widths to their longest value, within 10-50 characters"""
    for index, column in enumerate(worksheet.iter_cols(), start=1):
        longest = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        width = min(max(longest + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)
        worksheet.column_dimensions[get_column_letter(index)].width = width


def build_workbook(sheets: dict[str, list[Row]], generated_at: Optional[datetime] = None) -> bytes:
    """
    Build an .xlsx workbook from mirror sheets

    Every non-empty sheet becomes a tab whose first data row is a
    ``SHEET_METADATA`` row. Without any data a single ``No_Data`` tab is
    written. The given rows are not modified.

    Args:
        sheets: Sheet name -> rows, as returned by the mirror store
        generated_at: Timestamp recorded in the metadata rows

    Returns:
        Workbook file content
    """
    generated_at = generated_at or datetime.now()
    workbook = Workbook()
    workbook.remove(workbook.active)

    for name, rows in sheets.items():
        data_rows = [row for row in rows if not row.is_metadata]
        if not data_rows:
            continue
        records = [metadata_row(name, generated_at).to_flat()]
        records.extend(row.to_flat() for row in data_rows)
        worksheet = workbook.create_sheet(sheet_title(name, workbook.sheetnames))
        write_records(worksheet, records)

    if not workbook.sheetnames:
        workbook.create_sheet(PLACEHOLDER_SHEET_TITLE)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def write_workbook(sheets: dict[str, list[Row]], output_dir: Path, day: Optional[date] = None) -> Path:
    """Build the workbook and save it under ``output_dir``"""
    path = Path(output_dir) / export_filename(day)
    path.write_bytes(build_workbook(sheets))
    return path
