"""Spreadsheet decoder for weekly grid performance workbooks."""

import io
import math
import re
from datetime import date, datetime, time
from typing import Any, NamedTuple, Optional

import openpyxl
import structlog
import xlrd
from openpyxl.utils.datetime import to_excel

from grid_dashboard.core.column_map import DATE_COLUMN, HEADER_TOKENS, WEEKLY_COLUMNS
from grid_dashboard.models.domain_models import CellDiagnostic, DecodeResult, WeeklyRecord
from grid_dashboard.utils.exceptions import SpreadsheetFormatError, WorkbookReadError

logger = structlog.get_logger()

XLSX_MAGIC = b"PK\x03\x04"
XLS_MAGIC = b"\xd0\xcf\x11\xe0"

# Leading numeric prefix, e.g. "12.5 MW" -> 12.5
NUMBER_PREFIX_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class ParsedNumber(NamedTuple):
    """Outcome of a lenient numeric parse; reason is set when value fell back to 0."""

    value: float
    reason: Optional[str] = None


class SpreadsheetDecoder:
    """Decoder for weekly performance workbooks (.xlsx and .xls)."""

    def decode(self, content: bytes) -> list[WeeklyRecord]:
        """Decode workbook bytes into weekly records.

        Args:
            content: Raw workbook bytes

        Returns:
            Weekly records in sheet order

        Raises:
            SpreadsheetFormatError: If no header row is found
            WorkbookReadError: If the bytes are not a readable workbook
        """
        return self.decode_with_diagnostics(content).records

    def decode_with_diagnostics(self, content: bytes) -> DecodeResult:
        """Decode workbook bytes, keeping a note of every zero-defaulted cell.

        Args:
            content: Raw workbook bytes

        Returns:
            DecodeResult with records, cell diagnostics and warnings

        Raises:
            SpreadsheetFormatError: If no header row is found
            WorkbookReadError: If the bytes are not a readable workbook
        """
        logger.info("decoding_workbook_started", size_bytes=len(content))

        sheet_name, rows = self._read_first_sheet(content)
        logger.debug("sheet_loaded", sheet_name=sheet_name, row_count=len(rows))

        header_index = self._find_header_row(rows)
        logger.debug("header_row_found", row_index=header_index)

        warnings: list[str] = []
        header_width = self._row_width(rows[header_index])
        if header_width < len(WEEKLY_COLUMNS):
            warnings.append(
                f"Header row has {header_width} columns, expected {len(WEEKLY_COLUMNS)}"
            )

        records: list[WeeklyRecord] = []
        diagnostics: list[CellDiagnostic] = []

        for row_index in range(header_index + 1, len(rows)):
            row = rows[row_index]
            if not row or self._is_blank(self._cell(row, DATE_COLUMN)):
                continue

            record, row_diagnostics = self._build_record(row, row_number=row_index + 1)
            records.append(record)
            diagnostics.extend(row_diagnostics)

        if not records:
            warnings.append("No data rows found below the header row")

        for warning in warnings:
            logger.warning("workbook_schema_warning", sheet_name=sheet_name, warning=warning)

        logger.info(
            "decoding_workbook_completed",
            sheet_name=sheet_name,
            header_row_index=header_index,
            records=len(records),
            defaulted_cells=len(diagnostics),
        )

        return DecodeResult(
            records=records,
            diagnostics=diagnostics,
            warnings=warnings,
            header_row_index=header_index,
            sheet_name=sheet_name,
        )

    def _read_first_sheet(self, content: bytes) -> tuple[str, list[list[Any]]]:
        """Load the first worksheet as a grid of raw cell values.

        Raises:
            WorkbookReadError: If the workbook cannot be opened
        """
        if not content:
            raise WorkbookReadError("Workbook is empty")

        try:
            if content.startswith(XLS_MAGIC):
                book = xlrd.open_workbook(file_contents=content)
                sheet = book.sheet_by_index(0)
                rows = [
                    [
                        self._xls_value(value, cell_type, book.datemode)
                        for value, cell_type in zip(sheet.row_values(r), sheet.row_types(r))
                    ]
                    for r in range(sheet.nrows)
                ]
                return sheet.name, rows

            if content.startswith(XLSX_MAGIC):
                wb = openpyxl.load_workbook(io.BytesIO(content), data_only=True)
                try:
                    ws = wb.worksheets[0]
                    return ws.title, [list(row) for row in ws.iter_rows(values_only=True)]
                finally:
                    wb.close()

        except Exception as e:
            logger.error("workbook_read_failed", error=str(e), error_type=type(e).__name__)
            raise WorkbookReadError(f"Failed to read workbook: {e}") from e

        raise WorkbookReadError("Unrecognised workbook format, expected .xlsx or .xls")

    @staticmethod
    def _xls_value(value: Any, cell_type: int, datemode: int) -> Any:
        """Give legacy .xls cells the same Python types openpyxl produces."""
        if cell_type in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
            return None
        if cell_type == xlrd.XL_CELL_DATE:
            return xlrd.xldate.xldate_as_datetime(value, datemode)
        if cell_type == xlrd.XL_CELL_BOOLEAN:
            return bool(value)
        return value

    def _find_header_row(self, rows: list[list[Any]]) -> int:
        for index, row in enumerate(rows):
            if any(token in row for token in HEADER_TOKENS):
                return index

        raise SpreadsheetFormatError(
            f"No header row found: expected a cell containing one of {list(HEADER_TOKENS)}"
        )

    def _build_record(
        self, row: list[Any], row_number: int
    ) -> tuple[WeeklyRecord, list[CellDiagnostic]]:
        values: dict[str, Any] = {}
        diagnostics: list[CellDiagnostic] = []

        for column in WEEKLY_COLUMNS:
            raw = self._cell(row, column.index)

            if column.kind == "text":
                values[column.field] = self._coerce_text(raw)
                continue

            parsed = self._parse_number(raw)
            values[column.field] = parsed.value
            if parsed.reason is not None:
                diagnostics.append(
                    CellDiagnostic(
                        row=row_number,
                        column=column.index,
                        field=column.field,
                        raw_value=None if raw is None else str(raw),
                        reason=parsed.reason,
                    )
                )

        return WeeklyRecord(**values), diagnostics

    @staticmethod
    def _cell(row: list[Any], index: int) -> Any:
        return row[index] if index < len(row) else None

    @staticmethod
    def _row_width(row: list[Any]) -> int:
        """Number of cells up to and including the last non-empty one."""
        width = 0
        for index, value in enumerate(row):
            if value is not None and value != "":
                width = index + 1
        return width

    @staticmethod
    def _is_blank(value: Any) -> bool:
        """Whether a cell counts as empty for the date-column filter.

        Empty strings, missing cells, numeric zero and False all count as blank.
        """
        if value is None or value is False:
            return True
        if isinstance(value, str):
            return value == ""
        if isinstance(value, (int, float)):
            return value == 0 or (isinstance(value, float) and math.isnan(value))
        return False

    def _coerce_text(self, value: Any) -> str:
        if self._is_blank(value):
            return ""
        if value is True:
            return "true"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, datetime):
            if value.time() == time(0, 0):
                return value.date().isoformat()
            return value.isoformat(sep=" ")
        if isinstance(value, date):
            return value.isoformat()
        return str(value)

    @staticmethod
    def _parse_number(value: Any) -> ParsedNumber:
        """Parse a numeric cell, falling back to 0 instead of failing."""
        if value is None:
            return ParsedNumber(0.0, "missing")

        if isinstance(value, bool):
            return ParsedNumber(0.0, "not_numeric")

        if isinstance(value, (datetime, date, time)):
            # Dates carry their spreadsheet serial number
            return ParsedNumber(float(to_excel(value)))

        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return ParsedNumber(0.0, "missing")
            match = NUMBER_PREFIX_PATTERN.match(text)
            if not match:
                return ParsedNumber(0.0, "not_numeric")
            number = float(match.group())
        else:
            return ParsedNumber(0.0, "not_numeric")

        if not math.isfinite(number):
            return ParsedNumber(0.0, "not_numeric")
        return ParsedNumber(number)
