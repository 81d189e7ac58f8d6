"""Utility helpers for reusable functionality."""

from .datetime import (
    current_time_of_day,
    ensure_app_naive_datetime,
    ensure_app_timezone,
    get_app_timezone,
    now_in_app_naive_datetime,
    now_in_app_timezone,
    parse_time_of_day,
)

__all__ = [
    "current_time_of_day",
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "get_app_timezone",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
    "parse_time_of_day",
]
