import pytest

from sentinel.core.config import get_settings
from sentinel.services import session_manager as session_manager_module
from sentinel.services.session_manager import SessionManager
from sentinel.workers import background_tasks, scheduler


@pytest.fixture(autouse=True)
def tmp_settings(tmp_path, monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "SENTINEL_TMP", str(tmp_path))
    return settings


@pytest.fixture
def manager(monkeypatch):
    mgr = SessionManager()
    monkeypatch.setattr(session_manager_module, "_manager", mgr)
    monkeypatch.setattr(background_tasks, "_runner", None)
    monkeypatch.setattr(scheduler, "_scheduler", None)
    return mgr
