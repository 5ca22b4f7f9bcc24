"""Temporary identifiers for records that exist only on this client."""

from __future__ import annotations

import time
from typing import Any

LOCAL_ID_PREFIX = "local_"


class LocalIdFactory:
    """Hands out ``local_<milliseconds>`` identifiers, strictly increasing."""

    def __init__(self) -> None:
        self._last = 0

    def __call__(self) -> str:
        stamp = max(int(time.time() * 1000), self._last + 1)
        self._last = stamp
        return f"{LOCAL_ID_PREFIX}{stamp}"


new_local_id = LocalIdFactory()


def is_local_id(value: Any) -> bool:
    """Return True when ``value`` is a temporary identifier (or missing)."""
    if value is None:
        return True
    return str(value).startswith(LOCAL_ID_PREFIX)
