"""Core enumerations for the form mirror"""

from enum import Enum


class FieldType(str, Enum):
    """Supported form field types"""
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    SELECT = "select"
    TEXTAREA = "textarea"
    DATE = "date"
    NUMBER = "number"


class Persistence(str, Enum):
    """Where an operation's data was written to or read from"""
    REMOTE = "remote"
    LOCAL_ONLY = "local-only"
