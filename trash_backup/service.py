from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

from flask import current_app

from trash_backup.hub import NotificationHub, Observer
from trash_backup.ingress import SavedFile, save_payload
from trash_backup.seen import SeenSet
from trash_backup.tree import FileNode, build_tree, list_entries
from trash_backup.watcher import DEFAULT_POLL_INTERVAL, WatchLoop

EXTENSION_KEY = "trash_backup"


class BackupService:
    """서비스 수명 동안 공유되는 상태(Seen-Set, 관찰자 허브, 감시 루프)를 보유합니다."""

    def __init__(
        self,
        watch_dir: Path,
        backup_dir: Path,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        watch_events: bool = True,
    ):
        self.seen = SeenSet()
        self.hub = NotificationHub()
        self.loop = WatchLoop(
            watch_dir,
            backup_dir,
            self.seen,
            self.hub,
            poll_interval=poll_interval,
            watch_events=watch_events,
        )

    @property
    def watch_dir(self) -> Path:
        return self.loop.watch_dir

    @property
    def backup_dir(self) -> Path:
        return self.loop.backup_dir

    def start(self) -> None:
        self.loop.start()

    def stop(self) -> None:
        self.loop.stop()

    def scan(self) -> list[str]:
        return self.loop.poll_once()

    def register_observer(self, observer: Observer) -> None:
        self.hub.register(observer)

    def unregister_observer(self, observer: Observer) -> None:
        self.hub.unregister(observer)

    def ingest(self, payload: Optional[Mapping[str, Any]]) -> SavedFile:
        return save_payload(self.backup_dir, payload, self.hub)

    def list_backups(self) -> list[str]:
        return list_entries(self.backup_dir)

    def backup_tree(self) -> FileNode:
        return build_tree(self.backup_dir)


def get_service(app=None) -> BackupService:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]
