"""Tests for the weekly workbook decoder."""

from datetime import datetime

import pytest

from conftest import HEADER, build_workbook, build_xls_workbook, weekly_row
from grid_dashboard.core.excel_parser import XLS_MAGIC, SpreadsheetDecoder
from grid_dashboard.utils.exceptions import SpreadsheetFormatError, WorkbookReadError


@pytest.fixture
def decoder():
    return SpreadsheetDecoder()


def test_decode_maps_fixed_columns(decoder):
    """Header at row index 2 followed by one week."""
    content = build_workbook(
        [["GRIDCo Weekly Performance"], ["Week 1"], HEADER, weekly_row("Jan", "2025-01-07")]
    )

    records = decoder.decode(content)

    assert len(records) == 1
    record = records[0]
    assert record.month == "Jan"
    assert record.date == "2025-01-07"
    assert record.total_energy_generated == 100
    assert record.max_ghana_demand == 500
    assert record.max_domestic_demand == 400
    assert record.average_demand == 450
    assert record.load_factor == 90
    assert record.availability_69kv == 99.5
    assert record.availability_330kv == 99.9
    assert record.worst_station == "Tema"
    assert record.worst_feeder == "F12"
    assert record.worst_feeder_availability == 87.5
    assert record.nedco_availability_excluding_planned == 95.0
    assert record.frequency_within_range == 85.0
    assert record.frequency_outside_range == 15.0
    assert record.frequency_benchmark == 80.0


def test_decode_keeps_sheet_order_and_duplicates(decoder):
    content = build_workbook(
        [
            HEADER,
            weekly_row("Feb", "2025-02-04", {3: 610}),
            weekly_row("Jan", "2025-01-07", {3: 500}),
            weekly_row("Jan", "2025-01-07", {3: 505}),
        ]
    )

    records = decoder.decode(content)

    assert [r.date for r in records] == ["2025-02-04", "2025-01-07", "2025-01-07"]
    assert [r.max_ghana_demand for r in records] == [610, 500, 505]


def test_header_found_by_months_token_alone(decoder):
    header = ["Months", "Week"] + HEADER[2:]
    records = decoder.decode(build_workbook([header, weekly_row()]))
    assert len(records) == 1


def test_header_found_by_date_token_alone(decoder):
    header = ["Period", "DATE"] + HEADER[2:]
    records = decoder.decode(build_workbook([header, weekly_row()]))
    assert len(records) == 1


def test_missing_header_raises_format_error(decoder):
    content = build_workbook(
        [["Period", "Date", "Total Gen"], weekly_row("Jan", "2025-01-07")]
    )

    with pytest.raises(SpreadsheetFormatError):
        decoder.decode(content)


def test_rows_above_header_are_ignored(decoder):
    content = build_workbook(
        [weekly_row("Dec", "2024-12-31"), HEADER, weekly_row("Jan", "2025-01-07")]
    )

    records = decoder.decode(content)

    assert [r.date for r in records] == ["2025-01-07"]


def test_rows_without_date_are_dropped(decoder):
    content = build_workbook(
        [
            HEADER,
            weekly_row("Jan", "2025-01-07"),
            [],
            weekly_row("Jan", None),
            weekly_row("Jan", ""),
            weekly_row("Jan", 0),
            ["Notes", None, "prepared by system control"],
            weekly_row("Jan", "2025-01-14"),
        ]
    )

    records = decoder.decode(content)

    assert [r.date for r in records] == ["2025-01-07", "2025-01-14"]


def test_record_count_matches_rows_with_dates(decoder, workbook_bytes):
    assert len(decoder.decode(workbook_bytes)) == 3


def test_unparseable_number_defaults_to_zero(decoder):
    content = build_workbook([HEADER, weekly_row("Jan", "2025-01-07", {3: "N/A"})])

    result = decoder.decode_with_diagnostics(content)

    assert result.records[0].max_ghana_demand == 0
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.row == 2
    assert diagnostic.column == 3
    assert diagnostic.field == "max_ghana_demand"
    assert diagnostic.raw_value == "N/A"
    assert diagnostic.reason == "not_numeric"


def test_numeric_prefix_is_parsed(decoder):
    content = build_workbook(
        [HEADER, weekly_row("Jan", "2025-01-07", {2: "512.5 GWh", 6: " 72%", 13: "-3e1x"})]
    )

    result = decoder.decode_with_diagnostics(content)

    record = result.records[0]
    assert record.total_energy_generated == 512.5
    assert record.load_factor == 72
    assert record.worst_feeder_availability == -30
    assert result.diagnostics == []


def test_short_rows_default_missing_numbers(decoder):
    header = HEADER[:4]
    content = build_workbook([header, ["Jan", "2025-01-07", 100, 500]])

    result = decoder.decode_with_diagnostics(content)

    record = result.records[0]
    assert record.max_ghana_demand == 500
    assert record.frequency_benchmark == 0
    assert record.worst_station == ""
    # 21 columns, 4 present, 2 of the missing ones are text
    assert len(result.diagnostics) == 15
    assert {d.reason for d in result.diagnostics} == {"missing"}
    assert result.warnings == ["Header row has 4 columns, expected 21"]


def test_text_cells_are_coerced_to_strings(decoder):
    content = build_workbook(
        [HEADER, weekly_row(3, datetime(2025, 1, 7), {11: 42, 12: None})]
    )

    record = decoder.decode(content)[0]

    assert record.month == "3"
    assert record.date == "2025-01-07"
    assert record.worst_station == "42"
    assert record.worst_feeder == ""


def test_only_first_sheet_is_read(decoder):
    content = build_workbook(
        [HEADER, weekly_row("Jan", "2025-01-07")],
        extra_sheets={"Archive": [HEADER, weekly_row("Dec", "2024-12-31")] * 3},
    )

    result = decoder.decode_with_diagnostics(content)

    assert result.sheet_name == "Weekly"
    assert [r.date for r in result.records] == ["2025-01-07"]


def test_header_without_data_warns(decoder):
    result = decoder.decode_with_diagnostics(build_workbook([HEADER]))

    assert result.records == []
    assert result.header_row_index == 0
    assert result.warnings == ["No data rows found below the header row"]


@pytest.mark.parametrize(
    "content",
    [
        b"",
        b"Months,DATE\nJan,2025-01-07\n",
        b"PK\x03\x04 not really a zip archive",
        XLS_MAGIC + b" not really a compound document",
    ],
    ids=["empty", "csv", "broken-xlsx", "broken-xls"],
)
def test_unreadable_workbook_raises_read_error(decoder, content):
    with pytest.raises(WorkbookReadError):
        decoder.decode(content)


@pytest.mark.parametrize(
    "value,expected,reason",
    [
        (12, 12.0, None),
        (12.75, 12.75, None),
        ("7", 7.0, None),
        (".5", 0.5, None),
        ("1,234", 1.0, None),
        ("N/A", 0.0, "not_numeric"),
        ("", 0.0, "missing"),
        ("   ", 0.0, "missing"),
        (None, 0.0, "missing"),
        (True, 0.0, "not_numeric"),
        (float("nan"), 0.0, "not_numeric"),
    ],
)
def test_parse_number(value, expected, reason):
    parsed = SpreadsheetDecoder._parse_number(value)
    assert parsed.value == expected
    assert parsed.reason == reason


def test_legacy_xls_decodes_like_xlsx(decoder):
    """Date cells in .xls come back as ISO dates, not spreadsheet serials."""
    rows = [
        ["GRIDCo Weekly Performance"],
        HEADER,
        weekly_row("Jan", datetime(2025, 1, 7)),
        weekly_row("Jan", datetime(2025, 1, 14), {3: 520, 12: None}),
    ]

    xls_result = decoder.decode_with_diagnostics(build_xls_workbook(rows))
    xlsx_result = decoder.decode_with_diagnostics(build_workbook(rows))

    assert xls_result.sheet_name == "Weekly"
    assert xls_result.header_row_index == 1
    assert [r.date for r in xls_result.records] == ["2025-01-07", "2025-01-14"]
    assert [r.max_ghana_demand for r in xls_result.records] == [500, 520]
    assert xls_result.records[0].availability_69kv == 99.5
    assert xls_result.records[0].worst_station == "Tema"
    assert xls_result.records[1].worst_feeder == ""
    assert xls_result.records == xlsx_result.records
