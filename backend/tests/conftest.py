from __future__ import annotations

from pathlib import Path
from typing import Generator, List

import pytest
from fastapi.testclient import TestClient

from timelog.config import DEFAULT_CATEGORIES, CategoryOption, Settings, settings
from timelog.main import app
from timelog.services import TimeLogEngine
from timelog.state import SessionState


@pytest.fixture()
def categories() -> List[CategoryOption]:
    return [
        CategoryOption(value="direct", label="Direct Therapy"),
        CategoryOption(value="admin", label="Admin"),
        CategoryOption(value="travel", label="Travel"),
    ]


@pytest.fixture()
def engine(categories: List[CategoryOption]) -> TimeLogEngine:
    return TimeLogEngine(categories)


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    return settings.model_copy(
        update={
            "export_dir": tmp_path / "exports",
            "export_prefix": "RBTCA",
            "supervisor_name": "Dana",
            "categories": list(DEFAULT_CATEGORIES),
        }
    )


@pytest.fixture(scope="function")
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    original = app.state.session_state
    app.state.session_state = SessionState(test_settings)
    with TestClient(app) as c:
        yield c
    app.state.session_state = original
