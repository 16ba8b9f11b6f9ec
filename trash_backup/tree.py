from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class FileNode:
    name: str
    is_dir: bool
    children: Optional[list["FileNode"]] = field(default=None)

    def to_dict(self) -> dict:
        """JSON 직렬화용 dict. 파일 노드는 children 키가 없고, 디렉터리는 항상 가집니다."""
        data = {"name": self.name, "isDir": self.is_dir}
        if self.is_dir:
            data["children"] = [child.to_dict() for child in self.children or []]
        return data


def list_entries(root: Path) -> list[str]:
    root = Path(root)
    try:
        with os.scandir(root) as it:
            return [entry.name for entry in it]
    except FileNotFoundError:
        return []
    except OSError as exc:
        logger.warning("Cannot read backup folder %s: %s", root, exc)
        return []


def list_children(directory: Path) -> list[FileNode]:
    """디렉터리 바로 아래 항목을 이름순으로 반환합니다 (하위 트리는 읽지 않음)."""
    with os.scandir(directory) as it:
        nodes = [FileNode(name=entry.name, is_dir=entry.is_dir()) for entry in it]
    return sorted(nodes, key=lambda node: node.name)


def build_tree(root: Path) -> FileNode:
    """백업 폴더 전체를 재귀적으로 읽어 트리를 만듭니다. 읽을 수 없는 하위 항목은 건너뜁니다."""
    root = Path(root)
    is_dir = root.is_dir()
    if not is_dir and not root.exists():
        raise FileNotFoundError(f"No such file or directory: {root}")

    node = FileNode(name=root.name, is_dir=is_dir)
    if not is_dir:
        return node

    node.children = []
    with os.scandir(root) as it:
        entries = list(it)
    for entry in entries:
        try:
            node.children.append(build_tree(root / entry.name))
        except OSError:
            logger.debug("Skipping unreadable entry: %s", entry.path)
            continue
    return node
