from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from .config import CategoryOption, ensure_unique_categories, settings
from .errors import PreconditionError, ValidationError
from .schemas import CategoryTotal, Report, TimeEntry, TimeEntryCreate
from .utils import at_reference_date, format_duration

logger = logging.getLogger(__name__)

CandidateInput = Union[TimeEntryCreate, Mapping[str, Any]]


def minutes_between(start: Optional[str], end: Optional[str]) -> float:
    """Elapsed minutes from ``start`` to ``end`` on one shared reference day.

    Negative when ``end`` precedes ``start``; ``0`` when either side is empty.
    """
    if not start or not end:
        return 0
    try:
        start_at = at_reference_date(start)
    except ValueError as exc:
        raise ValidationError(f"Invalid start time: {start}", field="start_time") from exc
    try:
        end_at = at_reference_date(end)
    except ValueError as exc:
        raise ValidationError(f"Invalid end time: {end}", field="end_time") from exc
    return (end_at - start_at).total_seconds() / 60


def totals_by_category(entries: Iterable[TimeEntry], categories: Sequence[CategoryOption]) -> Dict[str, float]:
    totals: Dict[str, float] = {option.value: 0 for option in categories}
    for entry in entries:
        if entry.category in totals:
            totals[entry.category] += entry.duration_minutes
    return totals


def grand_total(entries: Iterable[TimeEntry]) -> float:
    return sum((entry.duration_minutes for entry in entries), 0)


def category_totals(entries: Sequence[TimeEntry], categories: Sequence[CategoryOption]) -> List[CategoryTotal]:
    totals = totals_by_category(entries, categories)
    return [
        CategoryTotal(
            category=option.value,
            label=option.label,
            minutes=totals[option.value],
            formatted=format_duration(totals[option.value]),
        )
        for option in categories
    ]


def format_entry_line(entry: TimeEntry, label: str) -> str:
    parts = [f"{entry.start_time} - {entry.end_time} ({format_duration(entry.duration_minutes)})", label]
    if entry.client:
        parts.append(f"Client: {entry.client}")
    if entry.description:
        parts.append(entry.description)
    return " | ".join(parts)


def check_report_preconditions(
    entries: Sequence[TimeEntry],
    session_name: Optional[str],
    *,
    require_entries: bool = True,
    require_name: bool = True,
) -> None:
    if require_entries and not entries:
        raise PreconditionError("No time entries to export")
    if require_name and not (session_name or "").strip():
        raise PreconditionError("Please select a name before exporting", field="employee_name")


def build_report(
    entries: Sequence[TimeEntry],
    categories: Sequence[CategoryOption],
    session_name: Optional[str],
    session_date: Optional[str],
    *,
    title: Optional[str] = None,
    require_entries: bool = True,
    require_name: bool = True,
) -> Report:
    check_report_preconditions(
        entries, session_name, require_entries=require_entries, require_name=require_name
    )
    labels = {option.value: option.label for option in categories}
    return Report(
        title=title or settings.report_title,
        employee_name=(session_name or "").strip(),
        date=(session_date or "").strip(),
        grand_total_minutes=grand_total(entries),
        summary=category_totals(entries, categories),
        entries=list(entries),
        details=[format_entry_line(entry, labels.get(entry.category, entry.category)) for entry in entries],
    )


def _coerce_candidate(candidate: CandidateInput) -> TimeEntryCreate:
    if isinstance(candidate, TimeEntryCreate):
        return candidate
    try:
        return TimeEntryCreate.model_validate(dict(candidate))
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or None
        raise ValidationError(f"Invalid value for {field}: {error.get('msg')}", field=field) from exc


class TimeLogEngine:
    """Ordered time entries of one session plus the totals and report derived from them."""

    def __init__(self, categories: Optional[Sequence[CategoryOption]] = None):
        self.categories: Tuple[CategoryOption, ...] = tuple(
            ensure_unique_categories(categories if categories is not None else settings.categories)
        )
        self._entries: List[TimeEntry] = []
        self._ids = itertools.count(1)

    @property
    def entries(self) -> Tuple[TimeEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get_entry(self, entry_id: int) -> Optional[TimeEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def add_entry(
        self,
        candidate: CandidateInput,
        valid_categories: Optional[Iterable[Union[CategoryOption, str]]] = None,
    ) -> TimeEntry:
        try:
            entry = self._build_entry(candidate, valid_categories)
        except ValidationError as exc:
            logger.warning("Rejected time entry: %s", exc.message)
            raise
        self._entries.append(entry)
        logger.info(
            "Added entry %s (%s - %s, %s)", entry.id, entry.start_time, entry.end_time, entry.category
        )
        return entry

    def remove_entry(self, entry_id: int) -> None:
        remaining = [entry for entry in self._entries if entry.id != entry_id]
        if len(remaining) != len(self._entries):
            logger.info("Removed entry %s", entry_id)
        self._entries = remaining

    def clear(self) -> None:
        self._entries = []

    def totals_by_category(self) -> Dict[str, float]:
        return totals_by_category(self._entries, self.categories)

    def category_totals(self) -> List[CategoryTotal]:
        return category_totals(self._entries, self.categories)

    def grand_total(self) -> float:
        return grand_total(self._entries)

    def build_report(
        self,
        session_name: Optional[str],
        session_date: Optional[str],
        *,
        title: Optional[str] = None,
        require_entries: bool = True,
        require_name: bool = True,
    ) -> Report:
        return build_report(
            self.entries,
            self.categories,
            session_name,
            session_date,
            title=title,
            require_entries=require_entries,
            require_name=require_name,
        )

    def _build_entry(
        self,
        candidate: CandidateInput,
        valid_categories: Optional[Iterable[Union[CategoryOption, str]]],
    ) -> TimeEntry:
        data = _coerce_candidate(candidate)
        if not data.start_time:
            raise ValidationError("Start time is required", field="start_time")
        if not data.end_time:
            raise ValidationError("End time is required", field="end_time")
        if not data.category:
            raise ValidationError("Category is required", field="category")

        options = self.categories if valid_categories is None else valid_categories
        if isinstance(options, (str, CategoryOption)):
            options = [options]
        allowed = {option.value if isinstance(option, CategoryOption) else option for option in options}
        if data.category not in allowed:
            raise ValidationError(f"Unknown category: {data.category}", field="category")

        duration = minutes_between(data.start_time, data.end_time)
        if duration <= 0:
            raise ValidationError("End time must be after start time", field="end_time")

        return TimeEntry(
            id=next(self._ids),
            start_time=data.start_time,
            end_time=data.end_time,
            duration_minutes=duration,
            category=data.category,
            client=data.client,
            description=data.description,
        )


__all__ = [
    "TimeLogEngine",
    "build_report",
    "category_totals",
    "check_report_preconditions",
    "format_duration",
    "format_entry_line",
    "grand_total",
    "minutes_between",
    "totals_by_category",
]
