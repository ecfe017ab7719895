"""Core abstractions for the form mirror"""

from .models import *
from .enums import *
from .exceptions import *
from .interfaces import *

__all__ = [
    # Models
    "RESERVED_COLUMNS",
    "SHEET_METADATA_ID",
    "to_cell",
    "FieldValidation",
    "FormField",
    "FormDefinition",
    "FormSubmission",
    "PredefinedResponse",
    "Row",
    "SheetMetadata",
    "SheetStatistics",
    "PersistResult",
    "LoadResult",
    "FormLoadResult",
    # Enums
    "FieldType",
    "Persistence",
    # Exceptions
    "FormMirrorError",
    "StorageError",
    "RemoteStoreError",
    "ExportError",
    "ValidationError",
    # Interfaces
    "KeyValueStorage",
    "RemoteStore",
]
