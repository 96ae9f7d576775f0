"""
Purpose:
- Turn raw model output into a single-line caption with optional prefix/suffix.
"""

from __future__ import annotations
import re

_WS = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WS.sub(" ", text or "").strip()


def _clean_prefix(prefix: str) -> str:
    p = _collapse(prefix)
    if p.endswith(","):
        p = p[:-1].rstrip()
    return p


def _clean_suffix(suffix: str) -> str:
    s = _collapse(suffix)
    if s.startswith(","):
        s = s[1:].lstrip()
    return s


def format_caption(raw_text: str, prefix: str = "", suffix: str = "", lowercase_first: bool = False) -> str:
    """
    Normalize a caption and join it with prefix/suffix.

    >>> format_caption("a red car", "CYBRPNK style,", "high quality 8k")
    'CYBRPNK style, a red car, high quality 8k'
    """
    caption = _collapse(raw_text)
    if caption.endswith("."):
        caption = caption[:-1].rstrip()
    if lowercase_first and caption:
        caption = caption[0].lower() + caption[1:]

    parts = [p for p in (_clean_prefix(prefix), caption, _clean_suffix(suffix)) if p]
    return _collapse(", ".join(parts))
