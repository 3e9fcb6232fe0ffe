from __future__ import annotations

import csv
import io
import logging
from collections import deque
from pathlib import Path
from typing import Callable, Deque, Dict, Optional, Union

from openpyxl import Workbook
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas

from .config import settings
from .errors import ExportError
from .schemas import Report
from .utils import format_duration, sanitize_filename

logger = logging.getLogger(__name__)

Content = Union[str, bytes]
FileWriter = Callable[[str, Content], None]
ClipboardWriter = Callable[[str], None]

MEDIA_TYPES: Dict[str, str] = {
    "csv": "text/csv",
    "txt": "text/plain",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
}


def export_filename(report: Report, extension: str, prefix: Optional[str] = None) -> str:
    base = sanitize_filename(report.employee_name) or sanitize_filename(prefix or settings.export_prefix) or "TimeLog"
    date = sanitize_filename(report.date) or "undated"
    return f"{base}_TimeLog_{date}.{extension}"


def render_csv(report: Report) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(
        ["Name", "Date", "Start", "End", "Duration (min)", "Duration", "Category", "Client", "Description"]
    )
    labels = {item.category: item.label for item in report.summary}
    for entry in report.entries:
        writer.writerow(
            [
                report.employee_name,
                report.date,
                entry.start_time,
                entry.end_time,
                _minutes_cell(entry.duration_minutes),
                format_duration(entry.duration_minutes),
                labels.get(entry.category, entry.category),
                entry.client or "",
                entry.description or "",
            ]
        )
    writer.writerow([])
    writer.writerow(["Category", "Total (min)", "Total"])
    for item in report.summary:
        writer.writerow([item.label, _minutes_cell(item.minutes), item.formatted])
    writer.writerow(["Grand Total", _minutes_cell(report.grand_total_minutes), report.grand_total])
    return buffer.getvalue()


def render_text(report: Report) -> str:
    return report.text + "\n"


def render_clipboard(report: Report, recipient: Optional[str] = None) -> str:
    recipient = (recipient if recipient is not None else settings.supervisor_name).strip()
    greeting = f"Hi {recipient}," if recipient else "Hi,"
    lines = [
        greeting,
        "",
        f"Here is my time log for {report.date or 'today'}:",
        "",
        report.text,
        "",
        "Thanks,",
        report.employee_name,
    ]
    return "\n".join(lines).rstrip() + "\n"


def render_xlsx(report: Report) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Entries"
    ws.append(["Start", "End", "Duration (min)", "Category", "Client", "Description"])
    labels = {item.category: item.label for item in report.summary}
    for entry in report.entries:
        ws.append(
            [
                entry.start_time,
                entry.end_time,
                round(entry.duration_minutes, 2),
                labels.get(entry.category, entry.category),
                entry.client or "",
                entry.description or "",
            ]
        )
    summary = wb.create_sheet("Summary")
    summary.append(["Name", report.employee_name])
    summary.append(["Date", report.date])
    summary.append([])
    summary.append(["Category", "Minutes", "Hours"])
    for item in report.summary:
        summary.append([item.label, round(item.minutes, 2), round(item.minutes / 60, 2)])
    summary.append(["Grand Total", round(report.grand_total_minutes, 2), round(report.grand_total_minutes / 60, 2)])
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def render_pdf(report: Report) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    y = height - 2 * cm
    pdf.setTitle(f"{report.title} {report.date}")
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(2 * cm, y, report.title)
    y -= 1 * cm
    pdf.setFont("Helvetica", 11)
    for line in report.text.splitlines()[1:]:
        if line in {"Summary", "Details"}:
            pdf.setFont("Helvetica-Bold", 12)
            pdf.drawString(2 * cm, y, line)
            pdf.setFont("Helvetica", 11)
        else:
            pdf.drawString(2 * cm, y, line)
        y -= 0.7 * cm
        if y < 2 * cm:
            pdf.showPage()
            y = height - 2 * cm
            pdf.setFont("Helvetica", 11)
    pdf.save()
    return buffer.getvalue()


RENDERERS: Dict[str, Callable[[Report], Content]] = {
    "csv": render_csv,
    "txt": render_text,
    "xlsx": render_xlsx,
    "pdf": render_pdf,
}


def export_report(
    report: Report,
    export_format: str,
    write_file: FileWriter,
    prefix: Optional[str] = None,
) -> str:
    """Render ``report`` and hand it to ``write_file``; returns the filename used."""
    renderer = RENDERERS.get(export_format)
    if renderer is None:
        raise ExportError(f"Unsupported export format: {export_format}", field="format")
    filename = export_filename(report, export_format, prefix)
    content = renderer(report)
    try:
        write_file(filename, content)
    except Exception as exc:
        logger.warning("Writing export %s failed: %s", filename, exc)
        raise ExportError(f"Could not write {filename}") from exc
    logger.info("Exported %s", filename)
    return filename


def copy_report(report: Report, write_clipboard: ClipboardWriter, recipient: Optional[str] = None) -> str:
    text = render_clipboard(report, recipient)
    try:
        write_clipboard(text)
    except Exception as exc:
        logger.warning("Copying report to clipboard failed: %s", exc)
        raise ExportError("Could not copy the report to the clipboard") from exc
    return text


class DirectoryWriter:
    """``write_file`` capability that stores exports in one directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def __call__(self, name: str, content: Content) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")

    def path_for(self, name: str) -> Path:
        return self.directory / Path(name).name


class ClipboardBuffer:
    """``write_clipboard`` capability keeping the most recent copied texts in memory."""

    def __init__(self, keep: int = 5) -> None:
        self.history: Deque[str] = deque(maxlen=keep)

    def __call__(self, text: str) -> None:
        self.history.append(text)

    @property
    def last(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def clear(self) -> None:
        self.history.clear()


def _minutes_cell(minutes: float) -> str:
    return f"{minutes:g}"
