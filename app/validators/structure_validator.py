"""
app/validators/structure_validator.py

Minimal structural check run by the importer before anything destructive.

This is not business validation: it only confirms that every row carries the
fields needed to compute a game plan natural key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from app.mappers.field_resolver import column_present, display_name, resolve_logical
from app.mappers.value_parsers import is_blank

STRUCTURAL_FIELDS: tuple[str, ...] = (
    "campaign",
    "range",
    "media_subtype",
    "start_date",
    "end_date",
)


@dataclass(frozen=True)
class StructureErrorDetail:
    """
    Structured structural violation.
    """

    code: str
    message: str
    row_index: int | None = None
    column: str | None = None


class ImportStructureError(ValueError):
    """
    Raised when records are not structurally importable.
    """

    def __init__(self, *, message: str, errors: Sequence[StructureErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [
                {
                    "code": error.code,
                    "message": error.message,
                    "row_index": error.row_index,
                    "column": error.column,
                }
                for error in self.errors
            ],
        }


def is_empty_record(record: Mapping[str, Any]) -> bool:
    """
    Return True when every value in the record is empty or whitespace.
    """

    return all(is_blank(value) for value in record.values())


class StructureValidator:
    """
    Checks column presence and required values across a record batch.
    """

    def __init__(self, *, required_fields: Sequence[str] = STRUCTURAL_FIELDS) -> None:
        self._required_fields = tuple(required_fields)

    def validate(self, records: Sequence[Mapping[str, Any]]) -> None:
        """
        Raise ImportStructureError listing every violation found.
        """

        if not records:
            raise ImportStructureError(
                message="No records found in the import payload.",
                errors=[StructureErrorDetail(code="empty_payload", message="Record list is empty.")],
            )

        first = next((record for record in records if not is_empty_record(record)), None)
        if first is None:
            raise ImportStructureError(
                message="No records found in the import payload.",
                errors=[StructureErrorDetail(code="empty_payload", message="Every record is empty.")],
            )

        errors: list[StructureErrorDetail] = []
        missing_columns = {field for field in self._required_fields if not column_present(first, field)}
        for field in sorted(missing_columns):
            errors.append(
                StructureErrorDetail(
                    code="missing_column",
                    message=f"Missing required column '{display_name(field)}'.",
                    column=display_name(field),
                )
            )

        for row_index, record in enumerate(records):
            if is_empty_record(record):
                continue
            for field in self._required_fields:
                if field in missing_columns:
                    continue
                if resolve_logical(record, field) is None:
                    errors.append(
                        StructureErrorDetail(
                            code="missing_value",
                            message=f"Row {row_index} is missing required fields: {display_name(field)}.",
                            row_index=row_index,
                            column=display_name(field),
                        )
                    )

        if errors:
            columns = sorted({error.column for error in errors if error.column})
            raise ImportStructureError(
                message=f"Structural validation failed. Missing required fields: {', '.join(columns)}.",
                errors=errors,
            )
