"""Local persistence layer"""

from .kv import MemoryStorage, JsonFileStorage
from .mirror import LocalMirrorStore
from .local_config import LocalConfigStore
from .row_mapper import to_row, from_row, row_to_submission

__all__ = [
    "MemoryStorage",
    "JsonFileStorage",
    "LocalMirrorStore",
    "LocalConfigStore",
    "to_row",
    "from_row",
    "row_to_submission",
]
