"""Positional column layout of the weekly performance workbook.

The workbook is read by column position, not by header label. Every position
the decoder knows about is listed here, so a header-driven layout can replace
this table without touching the decoder.
"""

from typing import Literal, NamedTuple

ParseKind = Literal["text", "number"]

# Header cells that identify the header row
HEADER_TOKENS = ("DATE", "Months")

# Position of the column that must be non-empty for a row to count as data
DATE_COLUMN = 1


class ColumnSpec(NamedTuple):
    index: int
    field: str
    kind: ParseKind


WEEKLY_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec(0, "month", "text"),
    ColumnSpec(1, "date", "text"),
    ColumnSpec(2, "total_energy_generated", "number"),
    ColumnSpec(3, "max_ghana_demand", "number"),
    ColumnSpec(4, "max_domestic_demand", "number"),
    ColumnSpec(5, "average_demand", "number"),
    ColumnSpec(6, "load_factor", "number"),
    ColumnSpec(7, "availability_69kv", "number"),
    ColumnSpec(8, "availability_161kv", "number"),
    ColumnSpec(9, "availability_225kv", "number"),
    ColumnSpec(10, "availability_330kv", "number"),
    ColumnSpec(11, "worst_station", "text"),
    ColumnSpec(12, "worst_feeder", "text"),
    ColumnSpec(13, "worst_feeder_availability", "number"),
    ColumnSpec(14, "ecg_availability_including_planned", "number"),
    ColumnSpec(15, "ecg_availability_excluding_planned", "number"),
    ColumnSpec(16, "nedco_availability_including_planned", "number"),
    ColumnSpec(17, "nedco_availability_excluding_planned", "number"),
    ColumnSpec(18, "frequency_within_range", "number"),
    ColumnSpec(19, "frequency_outside_range", "number"),
    ColumnSpec(20, "frequency_benchmark", "number"),
)
