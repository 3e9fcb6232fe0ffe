from __future__ import annotations

from threading import RLock
from typing import Any, Dict, Optional

from .config import Settings
from .exports import ClipboardBuffer, DirectoryWriter
from .services import TimeLogEngine
from .utils import format_duration, normalize_text


class SessionState:
    """The one live session behind the API: engine, employee name and report date."""

    def __init__(self, base_settings: Settings):
        self.lock = RLock()
        self.settings = base_settings
        self.engine = TimeLogEngine(base_settings.categories)
        self.employee_name: str = ""
        self.date: str = ""
        self.file_writer = DirectoryWriter(base_settings.export_dir)
        self.clipboard = ClipboardBuffer()

    def apply(self, updates: Dict[str, Any]) -> None:
        with self.lock:
            if "employee_name" in updates and updates["employee_name"] is not None:
                self.employee_name = normalize_text(updates["employee_name"]) or ""
            if "date" in updates and updates["date"] is not None:
                self.date = normalize_text(updates["date"]) or ""

    def reset(self, updates: Optional[Dict[str, Any]] = None) -> None:
        with self.lock:
            self.engine.clear()
            self.clipboard.clear()
            if updates:
                self.apply(updates)

    def snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "employee_name": self.employee_name,
                "date": self.date,
                "entries": list(self.engine.entries),
                "totals": {
                    "categories": self.engine.category_totals(),
                    "grand_total_minutes": self.engine.grand_total(),
                    "grand_total": format_duration(self.engine.grand_total()),
                },
            }