"""
Text helpers for user-authored CMS fields that end up in generated Markdown.

``sanitize`` runs three steps in a fixed order:

1. strip_markup      - drop tags, collapse whitespace
2. escape_markdown   - backslash-escape Markdown metacharacters
3. cleanup_artifacts - drop the mis-encoded apostrophe left by some editors

Sanitize a raw field exactly once. A second pass escapes the backslashes
added by the first one, so ``sanitize(sanitize(x))`` is not ``sanitize(x)``
whenever ``x`` contains a metacharacter.
"""
from __future__ import annotations

import re
from typing import Optional

_TAG_RE = re.compile(r"<.*?>")
_WHITESPACE_RE = re.compile(r"\s+")
_MARKDOWN_SPECIAL_RE = re.compile(r"([\\`*_{}\[\]()#+\-.!])")
_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")

# UTF-8 bytes of a right single quote decoded as cp1252
MISENCODED_APOSTROPHE = "â€™"

ELLIPSIS = "…"


def strip_markup(text: Optional[str]) -> str:
    """Remove HTML tags and collapse whitespace runs to a single space."""
    if not text or not text.strip():
        return ""
    no_tags = _TAG_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", no_tags).strip()


def escape_markdown(text: Optional[str]) -> str:
    r"""Prefix each of ``\ ` * _ { } [ ] ( ) # + - . !`` with a backslash."""
    if not text:
        return ""
    return _MARKDOWN_SPECIAL_RE.sub(r"\\\1", text)


def cleanup_artifacts(text: Optional[str]) -> str:
    # Only the apostrophe sequence is patched; other mojibake is left alone.
    if not text:
        return ""
    return text.replace(MISENCODED_APOSTROPHE, "")


def sanitize(text: Optional[str]) -> str:
    return cleanup_artifacts(escape_markdown(strip_markup(text)))


def truncate(text: Optional[str], max_length: int) -> str:
    """
    Shorten ``text`` to ``max_length`` characters plus an ellipsis.
    Text within the limit is returned unchanged; blank input gives "".
    """
    if not text or not text.strip():
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def slug(text: Optional[str]) -> str:
    """Replace every character that is not an ASCII letter or digit with '-'."""
    if not text:
        return ""
    return _NON_ALNUM_RE.sub("-", text)
