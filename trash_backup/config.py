from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path
from typing import Any, Mapping, Optional

from trash_backup.watcher import DEFAULT_POLL_INTERVAL

DEFAULT_WATCH_DIR = str(Path("~/.Trash").expanduser())
DEFAULT_BACKUP_DIR = "./TrashBackup"

ENV_PREFIX = "TRASH_BACKUP_"
LOG_FILE_ENV = ENV_PREFIX + "LOG_FILE"
PID_FILE_ENV = ENV_PREFIX + "PID_FILE"

_TRUE_VALUES = ("1", "true", "yes", "on")

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


def positive_interval(value: Any, name: str = "POLL_INTERVAL") -> float:
    """양수 초 단위 값으로 변환합니다. 잘못되었거나 0 이하이면 기본 주기를 사용합니다."""
    try:
        interval = float(value)
    except (TypeError, ValueError):
        interval = 0.0
    if interval > 0:
        return interval
    logger.warning("Ignoring invalid %s=%r, using %ss", name, value, DEFAULT_POLL_INTERVAL)
    return DEFAULT_POLL_INTERVAL


def default_settings() -> dict[str, Any]:
    """기본값에 환경 변수(TRASH_BACKUP_*)를 덮어쓴 설정을 반환합니다."""
    return {
        "WATCH_DIR": os.environ.get(ENV_PREFIX + "WATCH_DIR") or DEFAULT_WATCH_DIR,
        "BACKUP_DIR": os.environ.get(ENV_PREFIX + "BACKUP_DIR") or DEFAULT_BACKUP_DIR,
        "POLL_INTERVAL": positive_interval(
            os.environ.get(ENV_PREFIX + "POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            ENV_PREFIX + "POLL_INTERVAL",
        ),
        "WATCH_EVENTS": _env_bool(ENV_PREFIX + "WATCH_EVENTS", True),
        "START_WATCHER": _env_bool(ENV_PREFIX + "START_WATCHER", True),
    }


def read_env_file(env_path: Path) -> dict[str, str]:
    """KEY=VALUE 형식의 .env 파일을 읽습니다. 주석과 빈 줄은 무시하고, 파일이 없으면 빈 dict."""
    values: dict[str, str] = {}
    try:
        text = env_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return values
    except OSError as exc:
        logger.warning("Cannot read %s: %s", env_path, exc)
        return values
    for raw in text.splitlines():
        key, sep, value = raw.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        values.setdefault(key.strip(), value)
    return values


def ensure_secret_key(env_path: Path) -> str:
    """.env의 SECRET_KEY를 사용하고, 없으면 새로 만들어 파일 끝에 추가합니다."""
    secret = read_env_file(env_path).get("SECRET_KEY")
    if secret:
        return secret

    secret = secrets.token_urlsafe(32)
    try:
        env_path.parent.mkdir(parents=True, exist_ok=True)
        with env_path.open("a", encoding="utf-8") as f:
            f.write(f"\nSECRET_KEY={secret}\n")
    except OSError as exc:
        # 저장 실패 시 이번 프로세스에서만 사용
        logger.warning("Could not persist SECRET_KEY to %s: %s", env_path, exc)
    return secret


def load_config(app, test_config: Optional[Mapping[str, Any]] = None) -> None:
    app.config.update(default_settings())
    if test_config:
        app.config.update(test_config)
    if not app.config.get("SECRET_KEY"):
        project_root = Path(app.root_path).parent
        app.config["SECRET_KEY"] = ensure_secret_key(project_root / ".env")
    app.config["POLL_INTERVAL"] = positive_interval(app.config["POLL_INTERVAL"])
