from __future__ import annotations

import threading
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


class SeenSet:
    """이미 백업된 원본 경로를 기록합니다. 프로세스 수명 동안 줄어들지 않습니다."""

    def __init__(self):
        self._paths: set[str] = set()
        self._lock = threading.Lock()

    def has(self, path: PathLike) -> bool:
        with self._lock:
            return str(path) in self._paths

    def mark(self, path: PathLike) -> None:
        with self._lock:
            self._paths.add(str(path))

    def snapshot(self) -> list[str]:
        with self._lock:
            return sorted(self._paths)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return self.has(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)
