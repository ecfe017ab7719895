"""Submission exports grouped by form, and the summary report"""

import io
import re
from datetime import date, datetime
from typing import Optional

import pandas as pd

from core.exceptions import ExportError
from core.models import FormDefinition, FormSubmission
from .workbook import autosize_columns, sheet_title

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def humanize_key(key: str) -> str:
    """``firstName`` -> ``First Name``"""
    spaced = _CAMEL_BOUNDARY.sub(r" \1", key)
    return spaced[:1].upper() + spaced[1:]


def prepare_worksheet_data(
    submissions: list[FormSubmission],
    form: Optional[FormDefinition] = None
) -> list[dict]:
    """One record per submission, columns named by field label when a form is given"""
    records = []
    for index, submission in enumerate(submissions, 1):
        record = {
            "Submission #": index,
            "Form Type": submission.form_title,
            "Submission Date": submission.timestamp.strftime("%Y-%m-%d"),
            "Submission Time": submission.timestamp.strftime("%H:%M:%S"),
        }
        if form and form.fields:
            for field in form.fields:
                record[field.label] = submission.data.get(field.id, "")
        else:
            for key, value in submission.data.items():
                record[humanize_key(key)] = value
        records.append(record)
    return records


def _write_frames(frames: list[tuple[str, pd.DataFrame]]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        used: list[str] = []
        for name, df in frames:
            title = sheet_title(name, used)
            used.append(title)
            df.to_excel(writer, sheet_name=title, index=False)
            autosize_columns(writer.sheets[title])
    return buffer.getvalue()


def export_submissions(
    submissions: list[FormSubmission],
    form: Optional[FormDefinition] = None
) -> bytes:
    """
    Export submissions with one tab per form title

    Raises:
        ExportError: If there are no submissions
    """
    if not submissions:
        raise ExportError("No form submissions to export")

    grouped: dict[str, list[FormSubmission]] = {}
    for submission in submissions:
        grouped.setdefault(submission.form_title, []).append(submission)

    frames = [
        (title, pd.DataFrame(prepare_worksheet_data(group, form)))
        for title, group in grouped.items()
    ]
    return _write_frames(frames)


def export_single_form_type(
    submissions: list[FormSubmission],
    form_type: str,
    form: Optional[FormDefinition] = None
) -> tuple[str, bytes]:
    """
    Export the submissions of one form title

    Returns:
        (filename, workbook content)
    """
    selected = [s for s in submissions if s.form_title == form_type]
    if not selected:
        raise ExportError(f"No submissions found for {form_type}")
    slug = re.sub(r"\s+", "-", form_type.lower())
    filename = f"{slug}-submissions-{date.today().isoformat()}.xlsx"
    return filename, export_submissions(selected, form)


def local_time(value: datetime) -> datetime:
    """Naive local time, so aware and naive timestamps compare"""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def summary_data(submissions: list[FormSubmission]) -> pd.DataFrame:
    """Metric / Value / Details rows summarizing the submissions"""
    df = pd.DataFrame({
        "form_title": [s.form_title for s in submissions],
        "timestamp": [local_time(s.timestamp) for s in submissions],
    })
    counts = df["form_title"].value_counts(sort=False)
    total = len(df)

    rows = [
        {"Metric": "Total Submissions", "Value": total, "Details": "All form types combined"},
        {"Metric": "Form Types", "Value": len(counts), "Details": ", ".join(counts.index)},
        {
            "Metric": "Date Range",
            "Value": f"{df['timestamp'].min():%Y-%m-%d} - {df['timestamp'].max():%Y-%m-%d}",
            "Details": "First to last submission",
        },
    ]
    for form_type, count in counts.items():
        rows.append({
            "Metric": f"{form_type} Submissions",
            "Value": int(count),
            "Details": f"{count / total * 100:.1f}% of total",
        })
    return pd.DataFrame(rows)


def summary_report(
    submissions: list[FormSubmission],
    form: Optional[FormDefinition] = None
) -> bytes:
    """
    Workbook with a Summary tab and an All Submissions tab

    Raises:
        ExportError: If there are no submissions
    """
    if not submissions:
        raise ExportError("No form submissions to analyze")
    return _write_frames([
        ("Summary", summary_data(submissions)),
        ("All Submissions", pd.DataFrame(prepare_worksheet_data(submissions, form))),
    ])


def report_filename(kind: str = "report", day: Optional[date] = None) -> str:
    day = day or date.today()
    if kind == "report":
        return f"form-submissions-report-{day.isoformat()}.xlsx"
    return f"form-submissions-{day.isoformat()}.xlsx"
