"""Domain models for weekly grid performance data."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

TrendDirection = Literal["up", "down", "stable"]
StabilityStatus = Literal["stable", "moderate", "critical"]
DefaultReason = Literal["missing", "not_numeric"]


class WeeklyRecord(BaseModel):
    """One row of grid operations metrics for a single reporting week."""

    month: str = Field("", description="Reporting month label")
    date: str = Field("", description="Reporting week label")
    total_energy_generated: float = Field(
        0.0, alias="totalEnergyGenerated", description="Total energy generated (GWh)"
    )
    max_ghana_demand: float = Field(
        0.0, alias="maxGhanaDemand", description="Peak Ghana demand (MW)"
    )
    max_domestic_demand: float = Field(
        0.0, alias="maxDomesticDemand", description="Peak domestic demand (MW)"
    )
    average_demand: float = Field(0.0, alias="averageDemand", description="Average demand (MW)")
    load_factor: float = Field(0.0, alias="loadFactor", description="Load factor (%)")
    availability_69kv: float = Field(
        0.0, alias="availability69KV", description="69 kV line availability (%)"
    )
    availability_161kv: float = Field(
        0.0, alias="availability161KV", description="161 kV line availability (%)"
    )
    availability_225kv: float = Field(
        0.0, alias="availability225KV", description="225 kV line availability (%)"
    )
    availability_330kv: float = Field(
        0.0, alias="availability330KV", description="330 kV line availability (%)"
    )
    worst_station: str = Field("", alias="worstStation", description="Worst performing station")
    worst_feeder: str = Field("", alias="worstFeeder", description="Worst performing feeder")
    worst_feeder_availability: float = Field(
        0.0, alias="worstFeederAvailability", description="Worst feeder availability (%)"
    )
    ecg_availability_including_planned: float = Field(
        0.0, alias="ecgAvailabilityIncludingPlanned"
    )
    ecg_availability_excluding_planned: float = Field(
        0.0, alias="ecgAvailabilityExcludingPlanned"
    )
    nedco_availability_including_planned: float = Field(
        0.0, alias="nedcoAvailabilityIncludingPlanned"
    )
    nedco_availability_excluding_planned: float = Field(
        0.0, alias="nedcoAvailabilityExcludingPlanned"
    )
    frequency_within_range: float = Field(
        0.0, alias="frequencyWithinRange", description="Time frequency stayed within range (%)"
    )
    frequency_outside_range: float = Field(
        0.0, alias="frequencyOutsideRange", description="Time frequency left the range (%)"
    )
    frequency_benchmark: float = Field(
        0.0, alias="frequencyBenchmark", description="Frequency benchmark (%)"
    )

    model_config = ConfigDict(populate_by_name=True)

    @property
    def mean_transmission_availability(self) -> float:
        """Mean of the four voltage tier availabilities."""
        return (
            self.availability_69kv
            + self.availability_161kv
            + self.availability_225kv
            + self.availability_330kv
        ) / 4


class TrendMetric(BaseModel):
    """Latest value of a metric compared with the previous week."""

    value: float
    percent_change: float = Field(..., alias="percentChange")
    trend_direction: TrendDirection = Field(..., alias="trendDirection")

    model_config = ConfigDict(populate_by_name=True)

    @field_serializer("percent_change", when_used="json")
    def _serialize_percent_change(self, value: float) -> Optional[float]:
        # JSON has no representation for inf/nan
        return value if math.isfinite(value) else None


class StatusMetric(BaseModel):
    """Averaged metric with its stability classification."""

    value: float
    status: StabilityStatus


class KPISummary(BaseModel):
    """Top-line indicators derived from the current record sequence."""

    peak_demand: TrendMetric = Field(..., alias="peakDemand")
    total_generation: TrendMetric = Field(..., alias="totalGeneration")
    grid_stability: StatusMetric = Field(..., alias="gridStability")
    system_availability: StatusMetric = Field(..., alias="systemAvailability")

    model_config = ConfigDict(populate_by_name=True)


class CellDiagnostic(BaseModel):
    """A numeric cell that was defaulted to zero during decoding."""

    row: int = Field(..., description="1-based sheet row number")
    column: int = Field(..., description="0-based column position")
    field: str = Field(..., description="WeeklyRecord field the column maps to")
    raw_value: Optional[str] = Field(None, alias="rawValue")
    reason: DefaultReason

    model_config = ConfigDict(populate_by_name=True)


class DecodeResult(BaseModel):
    """Full outcome of decoding one workbook."""

    records: list[WeeklyRecord] = Field(default_factory=list)
    diagnostics: list[CellDiagnostic] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    header_row_index: int = Field(..., alias="headerRowIndex")
    sheet_name: str = Field("", alias="sheetName")

    model_config = ConfigDict(populate_by_name=True)


class DatasetSnapshot(BaseModel):
    """The current dataset as held by the store."""

    records: list[WeeklyRecord] = Field(default_factory=list)
    source_name: str = Field(..., alias="sourceName")
    loaded_at: datetime = Field(..., alias="loadedAt")
    diagnostics: list[CellDiagnostic] = Field(default_factory=list)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "sourceName": "GRIDCo_WEEKLY_New_08_-_2025.xlsx",
                "loadedAt": "2025-08-25T09:30:00Z",
                "records": [
                    {
                        "month": "Aug",
                        "date": "2025-08-19",
                        "totalEnergyGenerated": 512.4,
                        "maxGhanaDemand": 3820.0,
                    }
                ],
                "diagnostics": [],
            }
        },
    )
