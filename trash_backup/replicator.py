from __future__ import annotations

import logging
import os
from pathlib import Path

COPY_CHUNK_SIZE = 8 * 1024 * 1024

logger = logging.getLogger(__name__)


class ReplicationError(Exception):
    """원본 항목을 백업 위치로 복제하지 못했음을 나타내는 예외."""

    def __init__(self, source: Path, reason: str):
        super().__init__(f"Failed to replicate {source}: {reason}")
        self.source = source
        self.reason = reason


def copy_file(source_file: Path, destination_path: Path) -> None:
    """파일 내용을 청크 단위로 복사합니다. 대상 파일은 생성되거나 잘립니다.

    실패 시 부분적으로 기록된 대상 파일은 삭제하지 않습니다.
    """
    try:
        with source_file.open("rb") as src, destination_path.open("wb") as dst:
            while True:
                chunk = src.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                dst.write(chunk)
    except OSError as exc:
        raise ReplicationError(source_file, str(exc)) from exc


def copy_directory(source_dir: Path, destination_dir: Path) -> None:
    """디렉터리를 깊이 우선으로 재귀 복사합니다.

    첫 번째 하위 항목 실패 시 같은 레벨의 나머지 항목은 건너뛰고 예외를 전파합니다.
    이미 복사된 항목은 디스크에 그대로 남습니다.
    """
    try:
        with os.scandir(source_dir) as it:
            entries = list(it)
    except OSError as exc:
        raise ReplicationError(source_dir, str(exc)) from exc

    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ReplicationError(source_dir, str(exc)) from exc

    for entry in entries:
        child_source = source_dir / entry.name
        child_destination = destination_dir / entry.name
        if entry.is_dir():
            copy_directory(child_source, child_destination)
        else:
            copy_file(child_source, child_destination)


def replicate(source: Path, destination: Path) -> Path:
    """파일 또는 디렉터리를 destination으로 복제하고 destination을 반환합니다."""
    source = Path(source)
    destination = Path(destination)
    try:
        is_dir = source.is_dir()
        if not is_dir and not source.exists():
            raise FileNotFoundError(f"No such file or directory: {source}")
    except OSError as exc:
        raise ReplicationError(source, str(exc)) from exc

    if is_dir:
        logger.debug("Copying directory %s -> %s", source, destination)
        copy_directory(source, destination)
    else:
        logger.debug("Copying file %s -> %s", source, destination)
        copy_file(source, destination)
    return destination
