"""Photo payload helpers.

Photos travel inside the report record, either as a remote URL or as a
base64 ``data:`` URI built from a local image file.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Union


def to_data_uri(path: Union[str, Path]) -> str:
    """Read an image file and return it as a base64 data URI."""
    source = Path(path)
    encoded = base64.b64encode(source.read_bytes()).decode("ascii")
    mime_type = "image/png" if ".png" in str(source).lower() else "image/jpeg"
    return f"data:{mime_type};base64,{encoded}"


def is_data_uri(uri: str) -> bool:
    return uri.startswith("data:")


def is_remote_url(uri: str) -> bool:
    return uri.startswith(("http://", "https://"))


def is_base64_image(uri: str) -> bool:
    """Return True if ``uri`` is a base64-encoded image data URI."""
    return uri.startswith("data:image/") and "base64," in uri


def base64_image_size_kb(uri: str) -> int:
    """Approximate payload size of a data URI in KB."""
    return round(len(uri) / 1024)


def describe_photo(uri: str) -> str:
    """Short log-friendly description of a photo payload."""
    if is_data_uri(uri):
        return f"base64 image ({base64_image_size_kb(uri)}KB)"
    return uri
