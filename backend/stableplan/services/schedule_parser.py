"""
Tolerant schedule.csv parser.

Turns a hand-written spreadsheet export into a complete, sorted list of
``DayEntry`` objects.

Required columns (after header normalization and aliasing):
    week, day, title, category

Optional columns:
    duration_min, duration_max, intensity_label, intensity_rpe_min,
    intensity_rpe_max, blocks, substitution, manual_ref

The "blocks" column holds pipe-separated ``Name: text`` segments, e.g.
``Warm-up: 15 min walk | Main: 3x5 min canter | Cool-down: 10 min walk``.

Parsing is all-or-nothing. Every problem is collected into the
diagnostics list; entries are only returned when none of them is fatal.
Diagnostics starting with ``Warning:`` are informational.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, Union

from stableplan.config import settings
from stableplan.schemas.schedule import DayEntry, ScheduleBlock, default_blocks, is_rest_day

logger = logging.getLogger(__name__)

WARNING_PREFIX = "Warning:"

REQUIRED_COLUMNS = ("week", "day", "title", "category")

KNOWN_COLUMNS = REQUIRED_COLUMNS + (
    "duration_min",
    "duration_max",
    "intensity_label",
    "intensity_rpe_min",
    "intensity_rpe_max",
    "blocks",
    "substitution",
    "manual_ref",
)

# Normalized header -> canonical column
HEADER_ALIASES: Dict[str, str] = {
    # week
    "wk": "week",
    "week_no": "week",
    "week_number": "week",
    # day
    "day_no": "day",
    "day_number": "day",
    "day_of_week": "day",
    "dow": "day",
    "weekday": "day",
    # title
    "session": "title",
    "session_name": "title",
    "name": "title",
    "workout": "title",
    "activity": "title",
    # category
    "type": "category",
    "session_type": "category",
    "kind": "category",
    # duration
    "duration": "duration_min",
    "duration_minutes": "duration_min",
    "min_duration": "duration_min",
    "minutes": "duration_min",
    "mins": "duration_min",
    "max_duration": "duration_max",
    # intensity
    "intensity": "intensity_label",
    "effort": "intensity_label",
    "rpe": "intensity_rpe_min",
    "rpe_min": "intensity_rpe_min",
    "min_rpe": "intensity_rpe_min",
    "rpe_max": "intensity_rpe_max",
    "max_rpe": "intensity_rpe_max",
    # content
    "block": "blocks",
    "structure": "blocks",
    "segments": "blocks",
    "sub": "substitution",
    "substitute": "substitution",
    "alternative": "substitution",
    "alternate": "substitution",
    "manual": "manual_ref",
    "manual_page": "manual_ref",
    "reference": "manual_ref",
    "ref": "manual_ref",
    "page": "manual_ref",
}

DAY_NAMES: Dict[str, int] = {
    "mon": 1, "monday": 1,
    "tue": 2, "tues": 2, "tuesday": 2,
    "wed": 3, "weds": 3, "wednesday": 3,
    "thu": 4, "thur": 4, "thurs": 4, "thursday": 4,
    "fri": 5, "friday": 5,
    "sat": 6, "saturday": 6,
    "sun": 7, "sunday": 7,
}

CANDIDATE_DELIMITERS = (",", ";", "\t")

_PAREN_SUFFIX = re.compile(r"\s*\([^)]*\)\s*$")
_SEPARATORS = re.compile(r"[\s\-]+")
_WEEK_VALUE = re.compile(r"^(?:week|wk|w)?\s*#?\s*(\d+)$", re.IGNORECASE)
_DAY_VALUE = re.compile(r"^(?:day|d)?\s*#?\s*(\d+)$", re.IGNORECASE)
_LEADING_INT = re.compile(r"^[+-]?\d+")


@dataclass
class ParseResult:
    """Outcome of parsing a schedule.csv."""

    entries: List[DayEntry] = field(default_factory=list)
    num_weeks: int = 0
    diagnostics: List[str] = field(default_factory=list)

    @property
    def errors(self) -> List[str]:
        return [d for d in self.diagnostics if not is_warning(d)]

    @property
    def warnings(self) -> List[str]:
        return [d for d in self.diagnostics if is_warning(d)]

    @property
    def ok(self) -> bool:
        return not self.errors


def is_warning(diagnostic: str) -> bool:
    return diagnostic.startswith(WARNING_PREFIX)


# ============== Header handling ==============

def detect_delimiter(header_line: str) -> str:
    """
    Pick the delimiter of a header line from its unquoted separator counts.

    Tabs win when present and at least as common as every other candidate.
    Semicolons win only when strictly more common than commas (European
    spreadsheet exports). Otherwise the file is comma separated.
    """
    counts = {d: 0 for d in CANDIDATE_DELIMITERS}
    in_quotes = False
    for ch in header_line:
        if ch == '"':
            in_quotes = not in_quotes
        elif not in_quotes and ch in counts:
            counts[ch] += 1

    tabs, semicolons, commas = counts["\t"], counts[";"], counts[","]
    if tabs and tabs >= commas and tabs >= semicolons:
        return "\t"
    if semicolons > commas:
        return ";"
    return ","


def normalize_header(header: str) -> str:
    """Lower-case and simplify a header cell ("Week #" -> "week", "Duration (min)" -> "duration")."""
    h = header.strip().lower()
    h = _PAREN_SUFFIX.sub("", h)
    h = h.rstrip("#").strip()
    return _SEPARATORS.sub("_", h)


def resolve_header(header: str) -> str:
    """Map a raw header cell to its canonical column name (or its normalized form if unknown)."""
    normalized = normalize_header(header)
    return HEADER_ALIASES.get(normalized, normalized)


def map_columns(headers: List[str]) -> Tuple[Dict[str, int], List[str]]:
    """
    Build the canonical column -> field index map for a header row.

    Returns the map and any diagnostics (unknown or duplicate columns are
    warnings, missing required columns are fatal).
    """
    columns: Dict[str, int] = {}
    diagnostics: List[str] = []

    for idx, raw in enumerate(headers):
        if not raw.strip():
            continue
        column = resolve_header(raw)
        if column not in KNOWN_COLUMNS:
            diagnostics.append(f'{WARNING_PREFIX} unknown column "{column}" will be ignored')
            continue
        if column in columns:
            diagnostics.append(
                f'{WARNING_PREFIX} duplicate column "{raw.strip()}" (maps to "{column}") will be ignored'
            )
            continue
        columns[column] = idx

    for column in REQUIRED_COLUMNS:
        if column not in columns:
            diagnostics.append(f'Missing required column: "{column}"')

    return columns, diagnostics


# ============== Value coercion ==============

def coerce_week(value: str) -> Optional[int]:
    """Parse "3", "Week 3", "W3", "Wk 3" or "#3". Returns None when unparsable or < 1."""
    match = _WEEK_VALUE.match(value.strip())
    if not match:
        return None
    week = int(match.group(1))
    return week if week >= 1 else None


def coerce_day(value: str) -> Optional[int]:
    """Parse 1-7, "Day 3" or a day name (Mon..Sun, any case). Returns None when invalid."""
    v = value.strip().lower().rstrip(".")
    if v in DAY_NAMES:
        return DAY_NAMES[v]
    match = _DAY_VALUE.match(v)
    if not match:
        return None
    day = int(match.group(1))
    return day if 1 <= day <= 7 else None


def parse_optional_int(value: Optional[str]) -> Optional[int]:
    """Lenient integer parse from leading digits ("45 min" -> 45). Unparsable -> None."""
    if not value:
        return None
    match = _LEADING_INT.match(value.strip())
    if not match:
        return None
    return int(match.group(0))


def parse_duration(value: Optional[str]) -> Optional[int]:
    minutes = parse_optional_int(value)
    if minutes is None or minutes < 1:
        return None
    return minutes


def parse_blocks(raw: str, title: str, rest: bool) -> List[ScheduleBlock]:
    """Split a pipe-separated blocks cell; colon-less segments become "Main" blocks."""
    parts = [p.strip() for p in raw.split("|")] if raw else []
    blocks = []
    for part in parts:
        if not part:
            continue
        name, sep, text = part.partition(":")
        if sep and name.strip():
            blocks.append(ScheduleBlock(name=name.strip(), text=text.strip()))
        else:
            blocks.append(ScheduleBlock(name="Main", text=part))

    return blocks or default_blocks(title, rest)


# ============== Rows ==============

def _iter_rows(text: str, delimiter: str) -> Iterator[Tuple[int, List[str]]]:
    """Yield (line number, trimmed fields) for every non-blank CSV record."""
    # Hand-typed files often put a space after the delimiter, before a quoted field
    reader = csv.reader(io.StringIO(text), delimiter=delimiter, skipinitialspace=True)
    for row in reader:
        fields = [f.strip() for f in row]
        if not any(fields):
            continue
        yield reader.line_num, fields


def _parse_row(
    line_num: int,
    fields: List[str],
    columns: Dict[str, int],
) -> Tuple[Optional[DayEntry], List[str]]:
    def cell(column: str) -> str:
        idx = columns.get(column)
        if idx is None or idx >= len(fields):
            return ""
        return fields[idx]

    errors: List[str] = []

    week_raw = cell("week")
    week = coerce_week(week_raw)
    if week is None:
        errors.append(f'Row {line_num}: "week" must be a positive integer, got "{week_raw}"')
    elif week > settings.MAX_SCHEDULE_WEEKS:
        errors.append(
            f'Row {line_num}: "week" must be at most {settings.MAX_SCHEDULE_WEEKS}, got {week}'
        )

    day_raw = cell("day")
    day = coerce_day(day_raw)
    if day is None:
        errors.append(f'Row {line_num}: "day" must be 1-7 or a day name, got "{day_raw}"')

    title = cell("title")
    if not title:
        errors.append(f'Row {line_num}: "title" cannot be empty')

    category = cell("category").lower()
    if not category:
        errors.append(f'Row {line_num}: "category" cannot be empty')

    rpe_min = parse_optional_int(cell("intensity_rpe_min"))
    rpe_max = parse_optional_int(cell("intensity_rpe_max"))
    for column, value in (("intensity_rpe_min", rpe_min), ("intensity_rpe_max", rpe_max)):
        if value is not None and not 1 <= value <= 10:
            errors.append(f'Row {line_num}: "{column}" must be 1-10, got {value}')

    if errors:
        return None, errors

    rest = is_rest_day(title, category)
    entry = DayEntry(
        week=week,
        day=day,
        title=title,
        category=category,
        duration_min=parse_duration(cell("duration_min")),
        duration_max=parse_duration(cell("duration_max")),
        intensity_label=cell("intensity_label") or None,
        intensity_rpe_min=rpe_min,
        intensity_rpe_max=rpe_max,
        blocks=parse_blocks(cell("blocks"), title, rest),
        substitution=cell("substitution") or None,
        manual_ref=cell("manual_ref") or None,
    )
    return entry, []


def fill_rest_days(entries: List[DayEntry]) -> List[DayEntry]:
    """Add a rest entry for every missing day in weeks 1..max and sort by (week, day)."""
    if not entries:
        return []
    present = {entry.position for entry in entries}
    max_week = max(entry.week for entry in entries)
    filled = list(entries)
    for week in range(1, max_week + 1):
        for day in range(1, 8):
            if (week, day) not in present:
                filled.append(DayEntry.rest(week, day))
    filled.sort(key=lambda e: e.position)
    return filled


def _decode(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8-sig")
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw


def _failure(diagnostics: List[str]) -> ParseResult:
    logger.info(
        f"Schedule parse failed with {sum(1 for d in diagnostics if not is_warning(d))} error(s)"
    )
    return ParseResult(entries=[], num_weeks=0, diagnostics=diagnostics)


def parse_schedule(raw: Union[str, bytes]) -> ParseResult:
    """
    Parse schedule.csv content into a complete schedule.

    Args:
        raw: CSV text (or UTF-8 bytes). A leading byte-order mark is ignored.
            Comma, semicolon and tab separated files are accepted.

    Returns:
        ParseResult with entries sorted by (week, day), every week 1..num_weeks
        holding exactly 7 entries, and warning diagnostics. On any fatal
        problem the entries are empty, num_weeks is 0 and the diagnostics
        list every problem found.
    """
    text = _decode(raw)

    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        return _failure(["CSV must have a header row and at least one data row"])

    delimiter = detect_delimiter(lines[0])
    rows = _iter_rows(text, delimiter)

    header_row = next(rows, None)
    if header_row is None:
        return _failure(["CSV must have a header row and at least one data row"])

    columns, diagnostics = map_columns(header_row[1])
    if any(not is_warning(d) for d in diagnostics):
        return _failure(diagnostics)

    entries: List[DayEntry] = []
    seen: Dict[Tuple[int, int], int] = {}

    for line_num, fields in rows:
        entry, errors = _parse_row(line_num, fields, columns)
        if errors:
            diagnostics.extend(errors)
            continue

        first_row = seen.get(entry.position)
        if first_row is not None:
            diagnostics.append(
                f"Row {line_num}: duplicate entry for week {entry.week}, day {entry.day} "
                f"(already defined on row {first_row})"
            )
            continue
        seen[entry.position] = line_num
        entries.append(entry)

    if not entries and not any(not is_warning(d) for d in diagnostics):
        diagnostics.append("CSV must have a header row and at least one data row")

    if any(not is_warning(d) for d in diagnostics):
        return _failure(diagnostics)

    explicit = len(entries)
    entries = fill_rest_days(entries)
    num_weeks = entries[-1].week

    logger.info(
        f"Parsed schedule: {num_weeks} week(s), {explicit} explicit day(s), "
        f"{len(entries) - explicit} rest day(s) filled, {len(diagnostics)} warning(s)"
    )
    return ParseResult(entries=entries, num_weeks=num_weeks, diagnostics=diagnostics)
