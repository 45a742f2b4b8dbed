"""Content validation and markup helpers for task and journal text."""

from __future__ import annotations

import re
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>")
_HAS_TAG_RE = re.compile(r"<[^>]+>")
_TAG_NAME_RE = re.compile(r"^<\s*(/)?\s*([a-zA-Z][a-zA-Z0-9-]*)[^>]*?(/)?\s*>$")

# Order matters: &amp; last so "&amp;lt;" decodes to "&lt;", not "<".
_ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)

VOID_ELEMENTS = {"br", "hr", "img", "input", "meta", "link", "wbr", "col", "area", "source"}


def has_markup(text: str) -> bool:
    return bool(_HAS_TAG_RE.search(text))


def strip_markup(text: str) -> str:
    """Remove all tags, decode the common entities and trim."""
    if not text:
        return ""
    plain = _TAG_RE.sub("", text)
    for entity, char in _ENTITIES:
        plain = plain.replace(entity, char)
    return plain.strip()


def is_valid_content(text: Any) -> bool:
    """True if *text* carries real, non-whitespace content.

    Plain text only needs a non-blank trim; markup is stripped first so that
    ``<p>&nbsp;</p>`` counts as empty.
    """
    if not isinstance(text, str):
        return False
    if has_markup(text):
        return len(strip_markup(text)) > 0
    return len(text.strip()) > 0


def is_well_formed_rich_content(html: str) -> bool:
    """Check that every opened tag is closed in order (void elements excepted)."""
    if not isinstance(html, str):
        return False
    stack: list[str] = []
    for raw in re.findall(r"<[^>]*>", html):
        if raw.startswith("<!--") or raw.startswith("<!"):
            continue
        m = _TAG_NAME_RE.match(raw)
        if not m:
            return False
        closing, name, self_closing = m.group(1), m.group(2).lower(), m.group(3)
        if name in VOID_ELEMENTS or self_closing:
            if closing and name not in VOID_ELEMENTS:
                return False
            continue
        if closing:
            if not stack or stack[-1] != name:
                return False
            stack.pop()
        else:
            stack.append(name)
    return not stack


def normalize_content(text: str) -> str:
    """Wrap legacy plain text as paragraphs; markup passes through unchanged."""
    if not text:
        return ""
    if has_markup(text):
        return text
    paragraphs = re.split(r"\n\n+", text)
    return "".join(f"<p>{p.replace(chr(10), '<br>')}</p>" for p in paragraphs)
