from __future__ import annotations

from typing import List, Optional

from typing_extensions import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from .config import CategoryOption
from .utils import format_duration, normalize_text


class TimeEntryCreate(BaseModel):
    """Candidate entry as submitted by the form, without id and duration."""

    start_time: str = ""
    end_time: str = ""
    category: str = ""
    client: Optional[str] = None
    description: Optional[str] = None

    @field_validator("start_time", "end_time", "category", mode="before")
    @classmethod
    def _strip_required(cls, value: Optional[str]) -> str:
        return normalize_text(value) or ""

    @field_validator("client", "description", mode="before")
    @classmethod
    def _strip_optional(cls, value: Optional[str]) -> Optional[str]:
        return normalize_text(value)


class TimeEntry(BaseModel):
    model_config = ConfigDict(frozen=True)
    id: int
    start_time: str
    end_time: str
    duration_minutes: float
    category: str
    client: Optional[str] = None
    description: Optional[str] = None


class CategoryTotal(BaseModel):
    category: str
    label: str
    minutes: float
    formatted: str


class Report(BaseModel):
    model_config = ConfigDict(frozen=True)
    title: str
    employee_name: str
    date: str
    grand_total_minutes: float
    summary: List[CategoryTotal]
    entries: List[TimeEntry]
    details: List[str]

    @property
    def header_lines(self) -> List[str]:
        return [
            self.title,
            f"Name: {self.employee_name}",
            f"Date: {self.date}",
            f"Total: {self.grand_total}",
        ]

    @property
    def grand_total(self) -> str:
        return format_duration(self.grand_total_minutes)

    @property
    def text(self) -> str:
        lines = list(self.header_lines)
        lines.append("")
        lines.append("Summary")
        lines.extend(f"{item.label}: {item.formatted}" for item in self.summary)
        lines.append("")
        lines.append("Details")
        lines.extend(self.details)
        return "\n".join(lines)


class SessionUpdateRequest(BaseModel):
    employee_name: Optional[str] = None
    date: Optional[str] = None


class TotalsResponse(BaseModel):
    categories: List[CategoryTotal]
    grand_total_minutes: float
    grand_total: str


class SessionResponse(BaseModel):
    employee_name: str
    date: str
    entries: List[TimeEntry]
    totals: TotalsResponse


class ExportRequest(BaseModel):
    format: Literal["csv", "txt", "xlsx", "pdf"] = "csv"


class ExportResponse(BaseModel):
    filename: str
    format: str
    path: str


class ClipboardResponse(BaseModel):
    text: str


__all__ = [
    "CategoryOption",
    "CategoryTotal",
    "ClipboardResponse",
    "ExportRequest",
    "ExportResponse",
    "Report",
    "SessionResponse",
    "SessionUpdateRequest",
    "TimeEntry",
    "TimeEntryCreate",
    "TotalsResponse",
]
