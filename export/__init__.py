"""Workbook exports"""

from .workbook import build_workbook, write_workbook, export_filename, sheet_title
from .reports import (
    export_submissions, export_single_form_type, summary_report, report_filename
)

__all__ = [
    "build_workbook",
    "write_workbook",
    "export_filename",
    "sheet_title",
    "export_submissions",
    "export_single_form_type",
    "summary_report",
    "report_filename",
]
