"""Text helpers."""

from __future__ import annotations

import re

TITLE_SNIPPET_CHARS = 100


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace and trim."""
    return re.sub(r"\s+", " ", text).strip()


def build_title(category: str, description: str, max_chars: int = TITLE_SNIPPET_CHARS) -> str:
    """Build a report title like ``Potholes: Deep hole on ...``."""
    snippet = description[:max_chars]
    suffix = "..." if len(description) > max_chars else ""
    return f"{category}: {snippet}{suffix}"
