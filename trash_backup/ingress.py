from __future__ import annotations

import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from trash_backup.hub import NotificationHub

logger = logging.getLogger(__name__)


class IngressError(Exception):
    """외부에서 전달된 파일 저장 요청 처리 실패."""


class IngressValidationError(IngressError):
    """요청 값이 유효하지 않아 파일을 쓰기 전에 거부된 경우."""


class IngressWriteError(IngressError):
    """디스크 쓰기에 실패한 경우. 알림은 보내지 않습니다."""


@dataclass
class SavedFile:
    filename: str
    size: int
    path: Path

    def to_dict(self) -> dict:
        return {
            "success": True,
            "filename": self.filename,
            "size": self.size,
            "path": str(self.path),
        }


def validate_filename(filename: Any) -> str:
    if not isinstance(filename, str) or not filename:
        raise IngressValidationError("Filename is required")
    if filename in (".", "..") or "/" in filename or "\\" in filename or "\x00" in filename:
        raise IngressValidationError("Invalid filename")
    return filename


def decode_content(file_content: Any) -> bytes:
    if not isinstance(file_content, str) or not file_content:
        raise IngressValidationError("File content is required")
    try:
        return binascii.unhexlify(file_content)
    except (binascii.Error, ValueError) as exc:
        raise IngressValidationError("Invalid file content format") from exc


def parse_payload(payload: Optional[Mapping[str, Any]]) -> tuple[str, bytes]:
    """요청 본문에서 파일명과 디코딩된 바이트를 추출합니다. 파일 시스템은 건드리지 않습니다."""
    if not isinstance(payload, Mapping):
        raise IngressValidationError("Invalid JSON")
    filename = validate_filename(payload.get("filename"))
    data = decode_content(payload.get("fileContent"))
    return filename, data


def write_backup_file(backup_dir: Path, filename: str, data: bytes) -> Path:
    target = backup_dir / filename
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        raise IngressWriteError(f"Failed to save file: {exc}") from exc
    return target


def save_payload(
    backup_dir: Path,
    payload: Optional[Mapping[str, Any]],
    hub: NotificationHub,
) -> SavedFile:
    """검증 -> 저장 -> 브로드캐스트. 검증이나 저장이 실패하면 알림을 보내지 않습니다."""
    filename, data = parse_payload(payload)
    logger.info("Saving uploaded file %s (%s bytes)", filename, len(data))
    target = write_backup_file(Path(backup_dir), filename, data)
    logger.info("File saved successfully: %s", target)
    hub.broadcast(filename)
    return SavedFile(filename=filename, size=len(data), path=target)
