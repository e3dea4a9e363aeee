"""Request and response bodies for the HTTP API."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from grid_dashboard.models.domain_models import CellDiagnostic


class PasswordCheckRequest(BaseModel):
    password: str = Field(..., description="Upload password to verify")


class PasswordCheckResponse(BaseModel):
    verified: bool


class UploadResponse(BaseModel):
    """Outcome of replacing the current dataset with an uploaded workbook."""

    status: Literal["updated"] = "updated"
    weeks: int = Field(..., description="Number of weekly records loaded")
    source_name: str = Field(..., alias="sourceName")
    diagnostics: list[CellDiagnostic] = Field(
        default_factory=list, description="Numeric cells that were defaulted to zero"
    )
    warnings: list[str] = Field(default_factory=list)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "status": "updated",
                "weeks": 34,
                "sourceName": "GRIDCo_WEEKLY_New_08_-_2025.xlsx",
                "diagnostics": [],
                "warnings": [],
            }
        },
    )
