"""Utility functions for domain models."""

import random
import string
import time
from datetime import UTC, datetime

_BASE36 = string.digits + string.ascii_lowercase


def utc_now() -> datetime:
    """Get the current UTC datetime with timezone awareness."""
    return datetime.now(UTC)


def epoch_millis() -> int:
    return int(time.time() * 1000)


def random_base36(length: int = 9) -> str:
    return "".join(random.choices(_BASE36, k=length))
