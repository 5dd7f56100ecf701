"""
app/mappers package marker.
"""

from app.mappers.field_resolver import (
    FIELD_SYNONYMS,
    MONTH_FIELDS,
    column_present,
    display_name,
    normalize_header,
    resolve_field,
    resolve_logical,
    resolve_text,
)
from app.mappers.value_parsers import (
    is_blank,
    parse_date,
    parse_int,
    parse_numeric,
    stringify_value,
    weeks_between,
)

__all__ = [
    "FIELD_SYNONYMS",
    "MONTH_FIELDS",
    "column_present",
    "display_name",
    "is_blank",
    "normalize_header",
    "parse_date",
    "parse_int",
    "parse_numeric",
    "resolve_field",
    "resolve_logical",
    "resolve_text",
    "stringify_value",
    "weeks_between",
]
