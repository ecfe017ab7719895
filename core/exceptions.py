"""Custom exceptions for the form mirror"""


class FormMirrorError(Exception):
    """Base exception for all form mirror errors"""
    pass


class StorageError(FormMirrorError):
    """Local key-value storage could not be written"""
    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key


class RemoteStoreError(FormMirrorError):
    """Remote store unavailable, timed out or rejected the request"""
    def __init__(self, message: str, operation: str = None):
        super().__init__(message)
        self.operation = operation


class ExportError(FormMirrorError):
    """Nothing to export, or the workbook could not be built"""
    pass


class ValidationError(FormMirrorError):
    """Submitted form data failed field validation"""
    def __init__(self, message: str, errors: dict = None):
        super().__init__(message)
        self.errors = errors or {}
