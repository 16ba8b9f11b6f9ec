from __future__ import annotations

import pytest

from trash_backup import create_app
from trash_backup.service import get_service


class RecordingObserver:
    """메시지를 기록하는 가짜 관찰자. fail=True이면 전송 시 예외를 던집니다."""

    def __init__(self, name: str, fail: bool = False):
        self.name = name
        self.fail = fail
        self.messages: list[str] = []
        self.closed = False

    def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionError(f"{self.name} is gone")
        self.messages.append(text)

    def close(self) -> None:
        self.closed = True

    def __repr__(self) -> str:
        return f"RecordingObserver({self.name!r})"


@pytest.fixture
def watch_dir(tmp_path):
    path = tmp_path / "trash"
    path.mkdir()
    return path


@pytest.fixture
def backup_dir(tmp_path):
    return tmp_path / "backup"


@pytest.fixture
def app(watch_dir, backup_dir):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "WATCH_DIR": str(watch_dir),
        "BACKUP_DIR": str(backup_dir),
        "POLL_INTERVAL": 0.05,
        "WATCH_EVENTS": False,
        "START_WATCHER": False,
    })
    yield app
    get_service(app).stop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return get_service(app)
