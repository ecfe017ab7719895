"""Core data models for the form mirror"""

import re
from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime
from .enums import FieldType, Persistence


# Columns every mirror row carries, in export order
RESERVED_COLUMNS = (
    "ID",
    "Sheet_ID",
    "Form_Type",
    "Submission_Date",
    "Submission_Time",
    "User_Agent",
)

# Row ID of the synthetic header injected into exported sheets
SHEET_METADATA_ID = "SHEET_METADATA"


def to_cell(value: Any) -> str:
    """Coerce a submitted value to the string stored in a row cell"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(to_cell(v) for v in value)
    return str(value)


# ─────────────────────────────────────────────────────────────
# Forms
# ─────────────────────────────────────────────────────────────

class FieldValidation(BaseModel):
    """Regex validation attached to a form field"""
    pattern: Optional[str] = None
    message: Optional[str] = None


class FormField(BaseModel):
    """A single field of a form schema"""
    id: str
    type: FieldType = FieldType.TEXT
    label: str
    placeholder: Optional[str] = None
    required: bool = False
    options: Optional[list[str]] = None
    validation: Optional[FieldValidation] = None

    def validate_value(self, value: Any) -> Optional[str]:
        """Return an error message for an invalid value, None if it is valid"""
        text = to_cell(value).strip()
        if self.required and not text:
            return f"{self.label} is required"
        if self.validation and self.validation.pattern and text:
            try:
                matched = re.search(self.validation.pattern, text)
            except re.error:
                # Unusable pattern configured by an admin; accept the value
                return None
            if not matched:
                return self.validation.message or f"Invalid {self.label}"
        return None


class FormDefinition(BaseModel):
    """Form schema: ordered field definitions"""
    id: str = ""
    title: str
    description: Optional[str] = None
    fields: list[FormField] = []
    submit_text: Optional[str] = Field(default=None, alias="submitText")

    class Config:
        populate_by_name = True

    def validate_data(self, data: dict[str, Any]) -> dict[str, str]:
        """Validate submitted data; returns field id -> error message"""
        errors = {}
        for field in self.fields:
            error = field.validate_value(data.get(field.id))
            if error:
                errors[field.id] = error
        return errors


class FormSubmission(BaseModel):
    """A submitted form, keyed by field id"""
    id: str = ""
    form_id: str = Field(default="unknown", alias="formId")
    form_title: str = Field(default="", alias="formTitle")
    data: dict[str, Any] = {}
    timestamp: datetime = Field(default_factory=datetime.now)
    user_agent: Optional[str] = Field(default=None, alias="userAgent")

    class Config:
        populate_by_name = True


class PredefinedResponse(BaseModel):
    """Keyword-triggered chat response (predefined or custom Q&A)"""
    id: Optional[str] = None
    trigger: list[str] = []
    response: str = ""
    category: str = "custom"
    is_form: bool = Field(default=False, alias="isForm")
    form_data: Optional[FormDefinition] = Field(default=None, alias="formData")

    class Config:
        populate_by_name = True


# ─────────────────────────────────────────────────────────────
# Mirror
# ─────────────────────────────────────────────────────────────

class Row(BaseModel):
    """
    One flattened record of a sheet.

    Reserved columns are typed attributes; schema-defined columns (named
    by field label) live in ``columns`` in insertion order.
    """
    id: str = Field(alias="ID")
    sheet_id: str = Field(default="", alias="Sheet_ID")
    form_type: str = Field(default="", alias="Form_Type")
    submission_date: str = Field(default="", alias="Submission_Date")
    submission_time: str = Field(default="", alias="Submission_Time")
    user_agent: str = Field(default="", alias="User_Agent")
    columns: dict[str, str] = {}

    class Config:
        populate_by_name = True

    @property
    def is_metadata(self) -> bool:
        return self.id == SHEET_METADATA_ID

    def to_flat(self) -> dict[str, str]:
        """Flat column -> value mapping, reserved columns first"""
        flat = self.model_dump(by_alias=True, exclude={"columns"})
        for key, value in self.columns.items():
            if key not in flat:
                flat[key] = value
        return flat

    @classmethod
    def from_flat(cls, flat: dict[str, Any]) -> "Row":
        values = {str(k): to_cell(v) for k, v in flat.items()}
        reserved = {key: values.pop(key) for key in RESERVED_COLUMNS if key in values}
        reserved.setdefault("ID", "")
        return cls(**reserved, columns=values)


class SheetMetadata(BaseModel):
    """Summary of one sheet for the admin listing"""
    name: str
    sheet_id: str = ""
    form_name_prefix: str = ""
    date: str = ""
    row_count: int = 0
    is_active: bool = False


class SheetStatistics(BaseModel):
    """Overall mirror statistics"""
    total_sheets: int = 0
    current_active_sheet: Optional[str] = None
    current_active_sheet_id: str = ""
    current_form_title: str = "No Form"
    current_form_id: str = "N/A"
    sheets_info: list[SheetMetadata] = []


# ─────────────────────────────────────────────────────────────
# Dual-write results
# ─────────────────────────────────────────────────────────────

class PersistResult(BaseModel):
    """Outcome of a write that always lands locally and may reach the remote store"""
    persisted: Persistence
    found: bool = True
    row_id: Optional[str] = None
    form_id: Optional[str] = None
    sheet_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def synced(self) -> bool:
        return self.persisted == Persistence.REMOTE


class LoadResult(BaseModel):
    """Outcome of a read that prefers the remote store"""
    source: Persistence
    items: list[Any] = []
    error: Optional[str] = None


class FormLoadResult(BaseModel):
    """Active form lookup outcome"""
    source: Persistence
    form: Optional[FormDefinition] = None
    error: Optional[str] = None
