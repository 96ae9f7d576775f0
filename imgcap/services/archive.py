"""
Purpose:
- Package caption files into a single ZIP for download.

Notes:
- Entries are flat (directory parts of names are dropped).
- Same filename twice: the later entry wins.
"""

from __future__ import annotations
import io
import time
import zipfile
from pathlib import PurePosixPath
from typing import Dict, Iterable

from pydantic import BaseModel, Field


class CaptionFile(BaseModel):
    filename: str = Field(..., min_length=1)
    content: str = ""


def _entry_name(filename: str) -> str:
    name = PurePosixPath(filename.replace("\\", "/")).name
    return name or "caption.txt"


def build_archive(captions: Iterable[CaptionFile]) -> bytes:
    entries: Dict[str, str] = {}
    for c in captions:
        entries[_entry_name(c.filename)] = c.content

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content.encode("utf-8"))
    return buf.getvalue()


def archive_filename() -> str:
    return f"captions_{int(time.time() * 1000)}.zip"
