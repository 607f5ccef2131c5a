"""Result set serializers shared by every front end."""

import json
import logging
from typing import Optional, Tuple

import pandas as pd
from tabulate import tabulate

from .models import OutputFormat, ResultSet, Scalar, ScalarKind, scalar_kind


logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv"
JSON_MEDIA_TYPE = "application/json"

_CSV_SPECIAL_CHARS = (",", '"', "\n")

# Integral floats below this magnitude are written without a fractional part
_INTEGRAL_FLOAT_LIMIT = 1e21


def _canonical_number(value: Scalar) -> Scalar:
    """Write whole-number REALs as integers (``2.0`` becomes ``2``)."""
    if isinstance(value, float) and value.is_integer() and abs(value) < _INTEGRAL_FLOAT_LIMIT:
        return int(value)
    return value


class ResultFormatter:
    """Formatter for result sets: CSV and JSON on the wire, grids for people."""

    def __init__(self):
        """Initialize result formatter."""
        self.max_display_rows = 100
        self.max_column_width = 50

    def render(self, rows: ResultSet, fmt: Optional[str] = None) -> Tuple[str, str]:
        """Serialize rows in the requested format.

        Args:
            rows: Result set to serialize
            fmt: Format name; anything unrecognised means CSV

        Returns:
            Tuple of (body, media type)
        """
        output_format = OutputFormat.parse(fmt)
        if output_format == OutputFormat.JSON:
            return self.to_json(rows), JSON_MEDIA_TYPE
        return self.to_csv(rows), CSV_MEDIA_TYPE

    def to_csv(self, rows: ResultSet) -> str:
        """Serialize rows to CSV with ``\\n`` line endings.

        The header comes from the first row's keys. A result set with no rows
        has no columns either, so it serializes to the empty string.
        """
        if not rows:
            return ""

        headers = list(rows[0].keys())
        lines = [",".join(headers)]
        for row in rows:
            lines.append(",".join(self._csv_field(row.get(header)) for header in headers))

        return "\n".join(lines) + "\n"

    def _csv_field(self, value: Scalar) -> str:
        """Encode a single CSV field."""
        kind = scalar_kind(value)

        if kind == ScalarKind.NULL:
            return ""
        if kind == ScalarKind.TEXT:
            if any(char in value for char in _CSV_SPECIAL_CHARS):
                return '"' + value.replace('"', '""') + '"'
            return value
        if kind == ScalarKind.BOOL:
            return "true" if value else "false"
        if kind == ScalarKind.NUMBER:
            return str(_canonical_number(value))

        raise ValueError(f"Unhandled scalar kind: {kind}")

    def to_json(self, rows: ResultSet) -> str:
        """Serialize rows to a compact JSON array, keeping column order and types."""
        payload = [
            {column: _canonical_number(value) for column, value in row.items()}
            for row in rows
        ]
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

    def format_table(self, rows: ResultSet) -> str:
        """Format rows as a grid for terminal output."""
        if not rows:
            return "No rows returned"

        columns = list(rows[0].keys())
        # Built from plain lists so NULLs stay None and tabulate prints missingval
        display_rows = [
            [self._truncate(row.get(column)) for column in columns]
            for row in rows[:self.max_display_rows]
        ]
        df = pd.DataFrame(display_rows, columns=columns, dtype=object)

        table = tabulate(
            df,
            headers="keys",
            tablefmt="grid",
            showindex=False,
            missingval="NULL"
        )

        if len(rows) > self.max_display_rows:
            table += f"\n\nShowing first {self.max_display_rows} of {len(rows)} rows"

        return table

    def _truncate(self, value: Scalar) -> Scalar:
        if isinstance(value, str) and len(value) > self.max_column_width:
            return value[:self.max_column_width - 3] + "..."
        return value

    def format_error(self, error_message: str) -> str:
        """Format an error message for tool responses."""
        return f"Error: {error_message}"
