"""Sheet name encoding: {prefix}_{6-digit id}_{YYYYMMDD}"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from .identifiers import is_valid_id

SEPARATOR = "_"
PREFIX_MAX_LENGTH = 10

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def sanitize_prefix(form_title: str) -> str:
    """Keep ASCII alphanumerics of a form title, truncated to 10 characters"""
    return _NON_ALNUM.sub("", form_title or "")[:PREFIX_MAX_LENGTH]


def compact_date(value: Union[date, str, None] = None) -> str:
    """Format a date as YYYYMMDD (today when omitted)"""
    if value is None:
        value = date.today()
    if isinstance(value, str):
        return value.replace("-", "")
    return value.strftime("%Y%m%d")


@dataclass(frozen=True)
class SheetName:
    """Structured form of a sheet name"""
    prefix: str
    sheet_id: str
    date: str

    def format(self) -> str:
        return SEPARATOR.join((self.prefix, self.sheet_id, self.date))

    def __str__(self) -> str:
        return self.format()

    @classmethod
    def parse(cls, name: str) -> Optional["SheetName"]:
        """Parse a sheet name; None when the id segment is missing or malformed"""
        sheet_id = parse_id(name)
        if not sheet_id:
            return None
        parts = name.split(SEPARATOR)
        return cls(
            prefix=parts[0],
            sheet_id=sheet_id,
            date=parts[2] if len(parts) > 2 else "",
        )


def make_name(form_title: str, sheet_id: str, day: Union[date, str, None] = None) -> str:
    """
    Build a sheet name from a form title, a 6-digit id and a date

    Args:
        form_title: Form title; non-alphanumerics are dropped, max 10 chars kept
        sheet_id: Six-digit identifier
        day: Creation date (today when omitted)

    Returns:
        Sheet name such as ``ContactInf_123456_20240131``
    """
    return SheetName(sanitize_prefix(form_title), sheet_id, compact_date(day)).format()


def parse_id(sheet_name: str) -> str:
    """
    Extract the 6-digit id from a sheet name

    Returns:
        The id segment, or an empty string when it is absent or malformed
    """
    if not isinstance(sheet_name, str):
        return ""
    parts = sheet_name.split(SEPARATOR)
    if len(parts) >= 2 and is_valid_id(parts[1]):
        return parts[1]
    return ""


def split_name(sheet_name: str) -> tuple[str, str]:
    """Return (prefix, date) segments of a sheet name, empty when absent"""
    parts = sheet_name.split(SEPARATOR)
    prefix = parts[0] if parts else ""
    day = parts[2] if len(parts) > 2 else ""
    return prefix, day
