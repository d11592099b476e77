"""Listing the entries of a project directory."""

from __future__ import annotations

import os
import stat
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from .base import ErrorCode, Tool, ToolError, ToolOutput

MAX_LIST_DIR_ITEMS = 500


@dataclass(frozen=True)
class DirItem:
    """One directory entry: its name, whether it is a directory, and its size."""

    name: str
    is_dir: bool
    size: int


def sort_items(items: Iterable[DirItem]) -> list[DirItem]:
    """Directories first, then visible before hidden, then by name."""
    return sorted(items, key=lambda item: (not item.is_dir, item.name.startswith("."), item.name))


def _is_utf8(name: str) -> bool:
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class ListDirTool(Tool):
    """List a directory inside the project."""

    name = "list_dir"
    description = "List directory contents"

    def __init__(self, project_root: Path | str, max_items: int = MAX_LIST_DIR_ITEMS) -> None:
        super().__init__(project_root)
        self.max_items = max_items

    def execute(self, params: Mapping[str, Any]) -> ToolOutput:
        path = self._param(params, "path", str, ".")
        resolved = self.path_manager.validate(path)
        if not resolved.is_dir():
            raise ToolError(ErrorCode.PATH_NOT_DIRECTORY, f"Path is not a directory: {path}")

        items: list[DirItem] = []
        try:
            with os.scandir(resolved) as entries:
                for entry in entries:
                    if not _is_utf8(entry.name):
                        continue
                    try:
                        info = entry.stat(follow_symlinks=False)
                    except OSError:
                        continue
                    is_dir = stat.S_ISDIR(info.st_mode)
                    items.append(DirItem(entry.name, is_dir, 0 if is_dir else info.st_size))
        except PermissionError:
            raise ToolError(ErrorCode.PERMISSION_DENIED, f"Permission denied: {path}") from None
        except OSError as exc:
            raise ToolError(ErrorCode.INTERNAL_ERROR, str(exc)) from None

        ordered = sort_items(items)
        truncated = len(ordered) > self.max_items
        ordered = ordered[: self.max_items]

        return ToolOutput(
            {
                "success": True,
                "items": [asdict(item) for item in ordered],
                "truncated": truncated,
            },
            truncated=truncated,
        )