"""
Projection of day entries onto planned-session columns.

Every code path that writes a planned session for a workout (apply,
repeat, edit, reset, reschedule) goes through ``project_to_session_fields``
so the calendar row and the workout never disagree.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from stableplan.schemas.schedule import DayEntry


@dataclass(frozen=True)
class SessionFields:
    """Flat planned-session fields derived from a day entry."""

    session_type: str
    description: Optional[str]
    duration_minutes: Optional[int]
    intensity_rpe: Optional[int]
    notes: Optional[str]

    def as_columns(self) -> Dict[str, Any]:
        return asdict(self)


def render_blocks(entry: DayEntry) -> Optional[str]:
    """Blocks as ``[name] text`` lines, or None when the entry has no blocks."""
    if not entry.blocks:
        return None
    return "\n".join(f"[{block.name}] {block.text}" for block in entry.blocks)


def project_to_session_fields(entry: DayEntry) -> SessionFields:
    """
    Deterministic mapping from a day entry to planned-session fields.

    Ranges project onto their lower bound: ``duration_minutes`` is
    ``durationMin`` and ``intensity_rpe`` is ``intensityRpeMin``.
    """
    return SessionFields(
        session_type=entry.title,
        description=render_blocks(entry),
        duration_minutes=entry.duration_min,
        intensity_rpe=entry.intensity_rpe_min,
        notes=f"Substitution: {entry.substitution}" if entry.substitution else None,
    )
