"""File-backed key/value cache mirroring the client's view of the data.

Each key is stored as one JSON document so that entries can be read and
written independently. Failures never propagate: they are logged and the
caller gets the default value.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from codeblog.core.settings import settings

logger = logging.getLogger(__name__)

POSTS_KEY = "codeBlogs_data"
CURRENT_POST_KEY = "codeBlogs_currentBlog"
COMMENTS_KEY = "codeBlogs_comments"

ALL_KEYS = (POSTS_KEY, CURRENT_POST_KEY, COMMENTS_KEY)


class LocalCache:
    """JSON documents under a directory, one file per key."""

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = Path(directory) if directory is not None else settings.cache_dir

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for ``key`` or ``default``."""
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return default
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error reading %s from local cache: %s", key, exc)
            return default

        if not raw:
            return default
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.error("Corrupt local cache entry %s: %s", key, exc)
            return default

    def set(self, key: str, value: Any) -> None:
        """Serialize ``value`` under ``key``; the previous value is replaced atomically."""
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            payload = json.dumps(value, ensure_ascii=False)
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error saving %s to local cache: %s", key, exc)

    def remove(self, key: str) -> None:
        """Forget ``key``; missing keys are ignored."""
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Error removing %s from local cache: %s", key, exc)

    def clear(self) -> None:
        """Remove every key the client writes."""
        for key in ALL_KEYS:
            self.remove(key)
