"""
Shared utility functions for the schema graph services.
"""
import json
import re
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")
_CODE_FENCE_RE = re.compile(r"```(?:json|JSON)?")

_QUOTE_CHARS = {
    "postgresql": ('"', '"'),
    "mysql": ("`", "`"),
    "sqlserver": ("[", "]"),
}


def sanitize_identifier(name: str) -> str:
    """
    Derive a table name from an entity display name.

    Args:
        name: Display name such as ``"Order Item"``

    Returns:
        Lower-cased name with whitespace runs replaced by underscores
    """
    return _WHITESPACE_RE.sub("_", name.strip()).lower()


def quote_identifier(name: str, dialect: str) -> str:
    """
    Quote an identifier for a relational dialect.

    Args:
        name: Table or column name
        dialect: Dialect tag (``postgresql``, ``mysql`` or ``sqlserver``)

    Returns:
        Quoted identifier with embedded closing quotes doubled; the name
        unchanged for dialects without identifier quoting
    """
    if dialect not in _QUOTE_CHARS:
        return name
    opening, closing = _QUOTE_CHARS[dialect]
    return f"{opening}{name.replace(closing, closing * 2)}{closing}"


def strip_code_fences(text: str) -> str:
    """
    Remove Markdown code fences wrapped around a model response.

    Args:
        text: Raw response text

    Returns:
        Text without ``` / ```json markers, stripped of surrounding whitespace
    """
    return _CODE_FENCE_RE.sub("", text).strip()


def extract_json(text: str) -> Any:
    """
    Parse a JSON document out of a model response.

    Args:
        text: Raw response text, possibly fenced

    Returns:
        The decoded JSON value

    Raises:
        ValueError: If no JSON document can be decoded
    """
    cleaned = strip_code_fences(text or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("response contains no JSON object")
        return json.loads(cleaned[start:end + 1])
