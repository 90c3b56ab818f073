"""Flatten rich document bodies to plain text.

Article and release-note bodies are stored as editor JSON (block trees) or as
HTML strings. Search and reference previews only need the visible words, so
markup, attribute values and JSON keys are dropped.
"""

import html
import json
import re
from typing import Any

_TAG_RE = re.compile(r"<(?:/?[A-Za-z][^<>]*|!--.*?--)>", re.DOTALL)
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_WS_RE = re.compile(r"\s+")

# Block keys whose string values are structural, not visible text
_NON_TEXT_KEYS = frozenset({"type", "id", "src", "href", "url", "style", "class", "level"})


def _strip_html(text: str) -> str:
    text = _SCRIPT_STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    return html.unescape(text)


def _collect_strings(node: Any, out: list[str]) -> None:
    if isinstance(node, str):
        out.append(_strip_html(node))
    elif isinstance(node, dict):
        for key, value in node.items():
            if key in _NON_TEXT_KEYS and isinstance(value, str):
                continue
            _collect_strings(value, out)
    elif isinstance(node, list):
        for item in node:
            _collect_strings(item, out)


def flatten_body(content: Any) -> str:
    """
    Serialize a document body to a single whitespace-normalized string.

    Args:
        content: Editor JSON (dict/list), an HTML or plain string, a JSON-encoded
            string, or None

    Returns:
        Visible text of the body, words separated by single spaces
    """
    if content is None:
        return ""

    if isinstance(content, str):
        stripped = content.strip()
        if stripped[:1] in ("{", "["):
            try:
                content = json.loads(stripped)
            except json.JSONDecodeError:
                pass

    parts: list[str] = []
    _collect_strings(content, parts)
    return _WS_RE.sub(" ", " ".join(parts)).strip()


def contains_term(haystack: str | None, term: str) -> bool:
    """Case-insensitive substring test."""
    if not haystack or not term:
        return False
    return term.casefold() in haystack.casefold()


def preview(text: str, max_chars: int) -> str:
    """First max_chars characters of text, with an ellipsis when cut."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + "..."
