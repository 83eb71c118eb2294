"""utils – duration units and clock helpers."""

from .timeutils import convert_duration, to_seconds, time_of_day, parse_start_date, format_timestamp

__all__ = ["convert_duration", "to_seconds", "time_of_day", "parse_start_date", "format_timestamp"]
