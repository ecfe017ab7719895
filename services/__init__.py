"""Application services"""

from .form_data import FormDataService

__all__ = [
    "FormDataService",
]
