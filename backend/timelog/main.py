from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse

from .config import CategoryOption, settings
from .errors import ExportError, PreconditionError, TimeLogError, ValidationError
from .exports import MEDIA_TYPES, copy_report, export_report
from .schemas import (
    ClipboardResponse,
    ExportRequest,
    ExportResponse,
    SessionResponse,
    SessionUpdateRequest,
    TimeEntry,
    TimeEntryCreate,
    TotalsResponse,
)
from .state import SessionState

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    PreconditionError: status.HTTP_409_CONFLICT,
    ExportError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


app = FastAPI(title=settings.app_name)
app.state.session_state = SessionState(settings)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.exception_handler(TimeLogError)
async def time_log_error_handler(request: Request, exc: TimeLogError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    body = {"detail": exc.message}
    if exc.field:
        body["field"] = exc.field
    return JSONResponse(body, status_code=status_code)


def _state(request: Request) -> SessionState:
    return request.app.state.session_state


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/categories", response_model=list[CategoryOption])
def list_categories(request: Request) -> list[CategoryOption]:
    return list(_state(request).engine.categories)


@app.get("/session", response_model=SessionResponse)
def read_session(request: Request) -> SessionResponse:
    return SessionResponse.model_validate(_state(request).snapshot())


@app.put("/session", response_model=SessionResponse)
def write_session(payload: SessionUpdateRequest, request: Request) -> SessionResponse:
    state = _state(request)
    state.apply(payload.model_dump(exclude_unset=True))
    return SessionResponse.model_validate(state.snapshot())


@app.post("/session/reset", response_model=SessionResponse)
def reset_session(request: Request, payload: Optional[SessionUpdateRequest] = None) -> SessionResponse:
    state = _state(request)
    state.reset(payload.model_dump(exclude_unset=True) if payload else None)
    logger.info("Session reset")
    return SessionResponse.model_validate(state.snapshot())


@app.get("/entries", response_model=list[TimeEntry])
def list_entries(request: Request) -> list[TimeEntry]:
    return list(_state(request).engine.entries)


@app.post("/entries", response_model=TimeEntry, status_code=status.HTTP_201_CREATED)
def create_entry(payload: TimeEntryCreate, request: Request) -> TimeEntry:
    state = _state(request)
    with state.lock:
        return state.engine.add_entry(payload)


@app.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(entry_id: int, request: Request) -> Response:
    state = _state(request)
    with state.lock:
        state.engine.remove_entry(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/totals", response_model=TotalsResponse)
def read_totals(request: Request) -> TotalsResponse:
    return TotalsResponse.model_validate(_state(request).snapshot()["totals"])


@app.get("/report", response_class=PlainTextResponse)
def read_report(request: Request) -> str:
    state = _state(request)
    with state.lock:
        report = state.engine.build_report(state.employee_name, state.date, title=state.settings.report_title)
    return report.text


@app.post("/exports", response_model=ExportResponse, status_code=status.HTTP_201_CREATED)
def create_export(payload: ExportRequest, request: Request) -> ExportResponse:
    state = _state(request)
    with state.lock:
        report = state.engine.build_report(state.employee_name, state.date, title=state.settings.report_title)
    filename = export_report(report, payload.format, state.file_writer, state.settings.export_prefix)
    return ExportResponse(
        filename=filename,
        format=payload.format,
        path=str(state.file_writer.path_for(filename)),
    )


@app.post("/exports/clipboard", response_model=ClipboardResponse)
def create_clipboard_export(request: Request) -> ClipboardResponse:
    state = _state(request)
    with state.lock:
        report = state.engine.build_report(state.employee_name, state.date, title=state.settings.report_title)
    text = copy_report(report, state.clipboard, state.settings.supervisor_name)
    return ClipboardResponse(text=text)


@app.get("/exports/{filename}")
def download_export(filename: str, request: Request) -> Response:
    path = _state(request).file_writer.path_for(filename)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Export file missing")
    media_type = MEDIA_TYPES.get(Path(filename).suffix.lstrip("."), "application/octet-stream")
    return FileResponse(path, media_type=media_type, filename=path.name)
