"""Shared fixtures for the dashboard tests."""

import io
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

import pytest

# Settings are read when the app module is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["CONFIG_DIR"] = str(Path(__file__).parent / "config")

import openpyxl  # noqa: E402
import xlwt  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from grid_dashboard.core.dataset_store import DatasetStore  # noqa: E402
from grid_dashboard.main import app  # noqa: E402

UPLOAD_PASSWORD = "letmein"

HEADER = [
    "Months", "DATE", "Total Gen", "Max Ghana Demand", "Max Domestic Demand",
    "Average Demand", "Load Factor", "69KV", "161KV", "225KV", "330KV",
    "Worst Station", "Worst Feeder", "Worst Feeder Availability",
    "ECG Incl. Planned", "ECG Excl. Planned", "NEDCo Incl. Planned",
    "NEDCo Excl. Planned", "Freq Within", "Freq Outside", "Freq Benchmark",
]


def weekly_row(
    month: str = "Jan",
    date: Any = "2025-01-07",
    changes: Optional[dict[int, Any]] = None,
) -> list[Any]:
    """A complete 21-column data row; changes are keyed by column position."""
    row: list[Any] = [
        month, date, 100, 500, 400, 450, 90,
        99.5, 99.0, 98.5, 99.9,
        "Tema", "F12", 87.5,
        96.0, 97.0, 93.0, 95.0,
        85.0, 15.0, 80.0,
    ]
    for index, value in (changes or {}).items():
        row[index] = value
    return row


def build_workbook(
    rows: Iterable[list[Any]],
    extra_sheets: Optional[dict[str, list[list[Any]]]] = None,
) -> bytes:
    """Write rows into the first sheet of a new .xlsx workbook."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Weekly"
    for row in rows:
        ws.append(row)
    for title, sheet_rows in (extra_sheets or {}).items():
        sheet = wb.create_sheet(title)
        for row in sheet_rows:
            sheet.append(row)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_xls_workbook(rows: Iterable[list[Any]]) -> bytes:
    """Write rows into a legacy .xls workbook; datetimes become date cells."""
    book = xlwt.Workbook()
    sheet = book.add_sheet("Weekly")
    date_style = xlwt.easyxf(num_format_str="YYYY-MM-DD")
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is None:
                continue
            if isinstance(value, datetime):
                sheet.write(r, c, value, date_style)
            else:
                sheet.write(r, c, value)

    buffer = io.BytesIO()
    book.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def workbook_bytes() -> bytes:
    """Two title rows, the header at index 2, then three weeks."""
    return build_workbook(
        [
            ["GRIDCo Weekly Performance"],
            [],
            HEADER,
            weekly_row("Jan", "2025-01-07"),
            weekly_row("Jan", "2025-01-14", {3: 520, 18: 70.0}),
            weekly_row("Jan", "2025-01-21", {2: 110, 3: 550, 18: 90.0}),
        ]
    )


@pytest.fixture
def client():
    """Test client with an empty dataset store."""
    app.state.dataset_store = DatasetStore()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
