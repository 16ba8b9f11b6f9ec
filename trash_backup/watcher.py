from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from trash_backup.hub import NotificationHub
from trash_backup.replicator import ReplicationError, replicate
from trash_backup.seen import SeenSet

DEFAULT_POLL_INTERVAL = 1.0

logger = logging.getLogger(__name__)


class BackupRootError(Exception):
    """백업 루트 디렉터리를 만들 수 없을 때 발생합니다. 감시 루프를 시작할 수 없습니다."""


class _WakeEventHandler(FileSystemEventHandler):
    """감시 폴더 변경 시 루프의 대기를 조기에 깨웁니다. 새 항목 판정은 하지 않습니다."""

    def __init__(self, wake_event: threading.Event):
        super().__init__()
        self._wake_event = wake_event

    def on_created(self, event):
        self._wake_event.set()

    def on_moved(self, event):
        self._wake_event.set()


def ensure_backup_root(backup_dir: Path) -> Path:
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise BackupRootError(f"Cannot create backup folder {backup_dir}: {exc}") from exc
    if not backup_dir.is_dir():
        raise BackupRootError(f"Backup path is not a directory: {backup_dir}")
    return backup_dir


class WatchLoop:
    """감시 폴더를 주기적으로 나열하고, 새 항목을 백업한 뒤 알림을 보냅니다.

    LIST -> DIFF-AND-COPY -> SLEEP 순환을 반복합니다. Seen-Set은 복사가 완전히
    성공한 뒤에만 기록되므로 실패한 항목은 다음 주기에 다시 시도됩니다.
    """

    def __init__(
        self,
        watch_dir: Path,
        backup_dir: Path,
        seen: SeenSet,
        hub: NotificationHub,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        watch_events: bool = True,
        replicator: Callable[[Path, Path], Path] = replicate,
    ):
        self.watch_dir = Path(watch_dir).expanduser().absolute()
        self.backup_dir = ensure_backup_root(Path(backup_dir).expanduser().absolute())
        self.seen = seen
        self.hub = hub
        poll_interval = float(poll_interval)
        if poll_interval <= 0:
            logger.warning("Poll interval must be positive, got %s; using %ss", poll_interval, DEFAULT_POLL_INTERVAL)
            poll_interval = DEFAULT_POLL_INTERVAL
        self.poll_interval = poll_interval
        self.watch_events = watch_events
        self._replicate = replicator
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._observer: Optional[BaseObserver] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _list_entries(self) -> Optional[list[os.DirEntry]]:
        try:
            with os.scandir(self.watch_dir) as it:
                return list(it)
        except OSError as exc:
            logger.warning("Cannot read watched folder %s: %s", self.watch_dir, exc)
            return None

    def poll_once(self) -> list[str]:
        """한 주기(LIST + DIFF-AND-COPY)를 수행하고 새로 백업된 이름 목록을 반환합니다."""
        entries = self._list_entries()
        if entries is None:
            return []

        copied: list[str] = []
        for entry in entries:
            source_path = self.watch_dir / entry.name
            if self.seen.has(source_path):
                continue

            logger.info("New entry in watched folder: %s", entry.name)
            backup_path = self.backup_dir / entry.name
            try:
                self._replicate(source_path, backup_path)
            except ReplicationError as exc:
                logger.warning("Failed to copy %s: %s", entry.name, exc.reason)
                continue

            self.seen.mark(source_path)
            copied.append(entry.name)
            logger.info("Backed up: %s", backup_path)
            self.hub.broadcast(entry.name)
        return copied

    def _sleep(self) -> None:
        self._wake_event.wait(timeout=self.poll_interval)
        self._wake_event.clear()

    def _start_observer(self) -> None:
        if not self.watch_events:
            return
        try:
            observer = Observer()
            observer.schedule(_WakeEventHandler(self._wake_event), str(self.watch_dir), recursive=False)
            observer.start()
        except Exception as exc:
            logger.warning(
                "Filesystem events unavailable for %s, polling only: %s",
                self.watch_dir,
                exc,
            )
            return
        self._observer = observer

    def _stop_observer(self) -> None:
        if not self._observer:
            return
        try:
            self._observer.stop()
            self._observer.join(timeout=5)
        except Exception:
            logger.exception("Failed to stop observer cleanly.")
        finally:
            self._observer = None

    def run(self) -> None:
        logger.info(
            "Monitoring %s -> %s (poll interval %ss)",
            self.watch_dir,
            self.backup_dir,
            self.poll_interval,
        )
        self._start_observer()
        try:
            while not self._stop_event.is_set():
                try:
                    self.poll_once()
                except Exception:
                    logger.exception("Unexpected error while polling %s", self.watch_dir)
                if self._stop_event.is_set():
                    break
                self._sleep()
        finally:
            self._stop_observer()
            logger.info("Watch loop stopped.")

    def start(self) -> threading.Thread:
        if self.running:
            return self._thread
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, daemon=True, name="WatchLoop")
        self._thread.start()
        return self._thread

    def stop(self, timeout: float = 2.0) -> None:
        self._stop_event.set()
        self._wake_event.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        self._thread = None
