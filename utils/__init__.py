"""Utility modules"""

from .identifiers import generate_id, is_valid_id
from .sheet_names import SheetName, make_name, parse_id

__all__ = [
    "generate_id",
    "is_valid_id",
    "SheetName",
    "make_name",
    "parse_id",
]
