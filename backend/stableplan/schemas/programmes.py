"""Pydantic schemas for programme and programme version API operations."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from stableplan.models.programme import ProgrammeStatus
from stableplan.schemas.schedule import CamelModel, DayEntry


# ============== Schedule Parsing ==============

class ParseResponse(CamelModel):
    """Dry-run result of parsing a schedule.csv."""

    ok: bool = Field(..., description="Whether the file parsed without fatal errors")
    num_weeks: int = Field(..., description="Number of weeks, 0 on failure")
    entries: List[DayEntry] = Field(default_factory=list, description="Parsed day entries")
    errors: List[str] = Field(default_factory=list, description="Fatal diagnostics")
    warnings: List[str] = Field(default_factory=list, description="Non-fatal diagnostics")


# ============== Programme Schemas ==============

class ProgrammeCreate(CamelModel):
    """Schema for creating a programme."""

    name: str = Field(..., min_length=1, max_length=255, description="Programme name")
    description: Optional[str] = Field(None, description="Programme description")


class ProgrammeUpdate(ProgrammeCreate):
    """Replaces a programme's name and description."""
    pass


class ProgrammeResponse(CamelModel):
    """Schema for programme API responses."""

    id: int
    name: str
    description: Optional[str] = None
    created_by_id: int
    status: Optional[ProgrammeStatus] = None
    latest_version_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ============== Version Schemas ==============

class VersionCreate(CamelModel):
    """Schema for creating a draft version from JSON day entries."""

    num_weeks: int = Field(..., ge=1, le=52, description="Number of weeks")
    entries: List[DayEntry] = Field(..., description="Exactly num_weeks * 7 day entries")
    manual_html: Optional[str] = Field(None, description="Trainer manual as HTML")
    manual_file_name: Optional[str] = Field(None, max_length=255)


class VersionSummary(CamelModel):
    """Schema for version list views."""

    id: int
    programme_id: int
    version: int
    status: ProgrammeStatus
    num_weeks: int
    manual_file_name: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class VersionResponse(VersionSummary):
    """Schema for a version with its full schedule."""

    manual_html: Optional[str] = None
    schedule_data: List[DayEntry] = Field(default_factory=list)

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 3,
                "programmeId": 1,
                "version": 2,
                "status": "PUBLISHED",
                "numWeeks": 1,
                "manualFileName": "manual.docx",
                "publishedAt": "2026-03-01T09:00:00",
                "createdAt": "2026-02-28T17:30:00",
                "manualHtml": "<h1>Manual</h1>",
                "scheduleData": [
                    {"week": 1, "day": 1, "title": "Flat work", "category": "training"},
                ],
            }
        }


class ImportResponse(CamelModel):
    """Draft version created from a CSV upload, with parser warnings."""

    version: VersionResponse
    warnings: List[str] = Field(default_factory=list)
