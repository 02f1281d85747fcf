"""Violation codes emitted outside of configured rules."""

from __future__ import annotations

STRUCT_UNKNOWN_RECORD_TYPE = "STRUCT_UNKNOWN_RECORD_TYPE"
STRUCT_LINE_TOO_SHORT = "STRUCT_LINE_TOO_SHORT"
STRUCT_LINE_TOO_LONG = "STRUCT_LINE_TOO_LONG"
STRUCT_EMPTY_FILE = "STRUCT_EMPTY_FILE"
STRUCT_MISSING_HEADER = "STRUCT_MISSING_HEADER"
STRUCT_MISSING_FOOTER = "STRUCT_MISSING_FOOTER"
STRUCT_HEADER_POSITION = "STRUCT_HEADER_POSITION"
STRUCT_FOOTER_POSITION = "STRUCT_FOOTER_POSITION"

FIELD_REQUIRED = "FIELD_REQUIRED"
FIELD_UNPARSEABLE = "FIELD_UNPARSEABLE"
FIELD_INVALID_DATE = "FIELD_INVALID_DATE"
FIELD_FUTURE_DATE = "FIELD_FUTURE_DATE"
FIELD_NOT_ALLOWED = "FIELD_NOT_ALLOWED"
FIELD_PATTERN = "FIELD_PATTERN"
