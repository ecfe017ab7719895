"""Six-digit identifier generation"""

import random
import time

ID_LENGTH = 6


def generate_id() -> str:
    """
    Generate a 6-digit numeric identifier

    Combines the current time in milliseconds with a random offset below
    1000 and keeps the trailing six digits. Not collision-free: two calls
    within the same millisecond can return the same value.

    Returns:
        Exactly six ASCII digits
    """
    combined = int(time.time() * 1000) + random.randrange(1000)
    return str(combined)[-ID_LENGTH:].zfill(ID_LENGTH)


def is_valid_id(value: str) -> bool:
    """Check that a value is exactly six ASCII digits"""
    return (
        isinstance(value, str)
        and len(value) == ID_LENGTH
        and value.isascii()
        and value.isdigit()
    )
