"""Day entry schemas: the canonical representation of one scheduled day.

Day entries are stored as JSON (programme ``schedule_data`` and workout
``baseline_data`` / ``current_data``) using the camelCase keys produced by
``DayEntry.to_json``. That shape must survive parse -> store -> amended
repeat without loss.
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

REST_CATEGORIES = ("rest", "recovery")


def is_rest_day(title: str, category: str) -> bool:
    """A day is a rest day iff its category is rest/recovery or its title is "rest"."""
    return category.lower() in REST_CATEGORIES or title.lower() == "rest"


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ScheduleBlock(CamelModel):
    """Named text segment of a day (warm-up, main, cool-down...)."""

    name: str = Field(..., min_length=1, description="Block name")
    text: str = Field(..., description="Block content")

    class Config:
        frozen = True


def default_blocks(title: str, rest: bool) -> List[ScheduleBlock]:
    """Single block used when a day has no explicit blocks."""
    return [ScheduleBlock(name="Rest" if rest else "Main", text=title)]


class DayEntry(CamelModel):
    """One day of a programme schedule, keyed by (week, day)."""

    week: int = Field(..., ge=1, description="Programme week (1-based)")
    day: int = Field(..., ge=1, le=7, description="Day of week, 1 = Monday")
    title: str = Field(..., min_length=1, description="Session title")
    category: str = Field(..., min_length=1, description="Session category, lower-cased")
    duration_min: Optional[int] = Field(None, ge=1, description="Minimum duration in minutes")
    duration_max: Optional[int] = Field(None, ge=1, description="Maximum duration in minutes")
    intensity_label: Optional[str] = Field(None, description="Free-text intensity")
    intensity_rpe_min: Optional[int] = Field(None, ge=1, le=10, description="Lower RPE bound")
    intensity_rpe_max: Optional[int] = Field(None, ge=1, le=10, description="Upper RPE bound")
    blocks: List[ScheduleBlock] = Field(default_factory=list, description="Ordered sub-blocks")
    substitution: Optional[str] = Field(None, description="Alternate activity")
    manual_ref: Optional[str] = Field(None, description="Reference into the trainer manual")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "week": 1,
                "day": 1,
                "title": "Flat work",
                "category": "training",
                "durationMin": 30,
                "durationMax": 45,
                "intensityLabel": "Moderate",
                "intensityRpeMin": 5,
                "intensityRpeMax": 7,
                "blocks": [
                    {"name": "Warm-up", "text": "10 min walk"},
                    {"name": "Main", "text": "20 min trot"},
                ],
                "substitution": None,
                "manualRef": "p.12",
            }
        }

    @field_validator("category")
    @classmethod
    def lower_category(cls, v: str) -> str:
        return v.lower()

    @property
    def is_rest(self) -> bool:
        return is_rest_day(self.title, self.category)

    @property
    def position(self) -> tuple:
        return (self.week, self.day)

    @classmethod
    def rest(cls, week: int, day: int) -> "DayEntry":
        """Rest day used to fill gaps in a schedule."""
        return cls(
            week=week,
            day=day,
            title="Rest",
            category="rest",
            blocks=default_blocks("Rest", rest=True),
        )

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "DayEntry":
        return cls.model_validate(data)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def at(self, week: int, day: int) -> "DayEntry":
        """Copy of this entry moved to another schedule position."""
        return self.model_copy(update={"week": week, "day": day})


def entries_to_json(entries: Iterable[DayEntry]) -> List[Dict[str, Any]]:
    return [entry.to_json() for entry in entries]


def entries_from_json(data: Optional[List[Dict[str, Any]]]) -> List[DayEntry]:
    return [DayEntry.from_json(item) for item in data or []]
