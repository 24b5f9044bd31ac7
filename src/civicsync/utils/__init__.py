"""Utility helpers."""

from civicsync.utils.logging import configure_logging, get_logger
from civicsync.utils.media import describe_photo, to_data_uri
from civicsync.utils.text import build_title
from civicsync.utils.time import is_local_id, local_report_id, utc_now

__all__ = [
    "configure_logging",
    "get_logger",
    "describe_photo",
    "to_data_uri",
    "build_title",
    "is_local_id",
    "local_report_id",
    "utc_now",
]
