"""Unit tests for day entry -> planned session projection and the day entry model."""

import pytest

from stableplan.schemas.schedule import DayEntry, ScheduleBlock, is_rest_day
from stableplan.services.projection import project_to_session_fields, render_blocks


@pytest.mark.unit
class TestProjection:
    """project_to_session_fields is the only source of planned-session text."""

    def test_full_entry(self):
        entry = DayEntry(
            week=2,
            day=3,
            title="Canter sets",
            category="training",
            duration_min=40,
            duration_max=60,
            intensity_rpe_min=6,
            intensity_rpe_max=8,
            blocks=[
                ScheduleBlock(name="Warm-up", text="15 min walk"),
                ScheduleBlock(name="Main", text="3x5 min canter"),
            ],
            substitution="Hill walk",
        )

        fields = project_to_session_fields(entry)

        assert fields.session_type == "Canter sets"
        assert fields.description == "[Warm-up] 15 min walk\n[Main] 3x5 min canter"
        assert fields.duration_minutes == 40
        assert fields.intensity_rpe == 6
        assert fields.notes == "Substitution: Hill walk"

    def test_rest_day_never_fails(self):
        fields = project_to_session_fields(DayEntry.rest(1, 7))

        assert fields.session_type == "Rest"
        assert fields.description == "[Rest] Rest"
        assert fields.duration_minutes is None
        assert fields.intensity_rpe is None
        assert fields.notes is None

    def test_bare_entry_has_no_description(self):
        entry = DayEntry(week=1, day=1, title="Rest", category="rest")

        assert render_blocks(entry) is None
        assert project_to_session_fields(entry).as_columns() == {
            "session_type": "Rest",
            "description": None,
            "duration_minutes": None,
            "intensity_rpe": None,
            "notes": None,
        }


@pytest.mark.unit
class TestDayEntry:
    """Rest predicate and JSON shape of day entries."""

    @pytest.mark.parametrize("title,category,expected", [
        ("Flat work", "training", False),
        ("Day off", "rest", True),
        ("Paddock", "Recovery", True),
        ("REST", "turnout", True),
        ("Restful hack", "training", False),
    ])
    def test_is_rest(self, title, category, expected):
        assert DayEntry(week=1, day=1, title=title, category=category).is_rest is expected
        assert is_rest_day(title, category) is expected

    def test_category_is_lower_cased(self):
        assert DayEntry(week=1, day=1, title="Hack", category="Training").category == "training"

    def test_json_uses_camel_case_and_round_trips(self):
        entry = DayEntry(
            week=1, day=2, title="Hack", category="training",
            duration_min=30, intensity_rpe_min=4, manual_ref="p.3",
        )

        data = entry.to_json()

        assert data["durationMin"] == 30
        assert data["intensityRpeMin"] == 4
        assert data["manualRef"] == "p.3"
        assert DayEntry.from_json(data) == entry

    def test_at_moves_position_only(self):
        entry = DayEntry(week=1, day=2, title="Hack", category="training")

        moved = entry.at(3, 5)

        assert moved.position == (3, 5)
        assert moved.title == "Hack"
        assert entry.position == (1, 2)

    @pytest.mark.parametrize("overrides", [
        {"day": 8},
        {"week": 0},
        {"title": ""},
        {"intensity_rpe_min": 11},
    ])
    def test_invalid_entries_are_rejected(self, overrides):
        data = {"week": 1, "day": 1, "title": "Hack", "category": "training", **overrides}

        with pytest.raises(ValueError):
            DayEntry(**data)
