# src/paradoc/utils.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from slugify import slugify

logger = logging.getLogger("paradoc")

PUBLISHED_FORMAT = "%Y-%m-%d %H:%M:%S"


def safe_fname(name: str, fallback: str = "file") -> str:
    """
    Create a filesystem safe name, preserve extension when present.
    """
    name = (name or "").strip() or fallback
    if "." in name:
        base, ext = name.rsplit(".", 1)
        return f"{slugify(base)[:100] or fallback}.{ext}"
    return slugify(name)[:100] or fallback


def source_name(source: Any) -> str:
    """Human readable name for a source, used in logs and error reasons."""
    if isinstance(source, (str, os.PathLike)):
        return Path(source).name or str(source)
    return str(getattr(source, "name", None) or source)


def source_path(source: Any) -> Optional[Path]:
    if isinstance(source, (str, os.PathLike)):
        return Path(source)
    return None


def created_date(path: Optional[Path]) -> str:
    """
    Creation time of a file as a display string.
    Falls back to modification time where the platform has no birth time,
    and to now when the file cannot be stat'ed.
    """
    if path is not None:
        try:
            st = path.stat()
            ts = getattr(st, "st_birthtime", None) or st.st_mtime
            return datetime.fromtimestamp(ts).strftime(PUBLISHED_FORMAT)
        except OSError as e:
            logger.debug("Could not stat %s, %s", path, e)
    return datetime.now().strftime(PUBLISHED_FORMAT)


def count_words(text: str) -> int:
    return len(text.split())
