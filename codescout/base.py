"""Shared building blocks for the exploration tools: errors, outputs, paths."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

_MISSING = object()


class ErrorCode(str, Enum):
    """Machine-readable error codes reported by the tools."""

    PATH_NOT_FOUND = "PATH_NOT_FOUND"
    PATH_OUTSIDE_ROOT = "PATH_OUTSIDE_ROOT"
    PATH_NOT_FILE = "PATH_NOT_FILE"
    PATH_NOT_DIRECTORY = "PATH_NOT_DIRECTORY"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_PATTERN = "INVALID_PATTERN"
    INVALID_LINE_RANGE = "INVALID_LINE_RANGE"
    SHELL_CMD_NOT_ALLOWED = "SHELL_CMD_NOT_ALLOWED"
    SHELL_DANGEROUS_OPERATOR = "SHELL_DANGEROUS_OPERATOR"
    SHELL_EXECUTION_FAILED = "SHELL_EXECUTION_FAILED"
    EXECUTION_TIMEOUT = "EXECUTION_TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @classmethod
    def from_str(cls, text: str) -> ErrorCode | None:
        """Return the code whose string form is ``text``, or None."""
        try:
            return cls(text)
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


class ToolError(Exception):
    """A tool failure carrying an :class:`ErrorCode` and a message."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(f"{code.value}: {message}")
        self.code = code
        self.message = message


@dataclass
class ToolOutput:
    """Successful result of a tool run."""

    data: dict[str, Any]
    truncated: bool = False
    metadata: dict[str, Any] | None = None
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation of the output."""
        result: dict[str, Any] = {
            "success": self.success,
            "data": self.data,
            "truncated": self.truncated,
        }
        if self.metadata is not None:
            result["metadata"] = self.metadata
        return result


def _is_within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


@dataclass
class PathManager:
    """Resolves user-supplied paths and keeps them inside the project root."""

    project_root: Path = field()

    def __post_init__(self) -> None:
        self.project_root = Path(self.project_root)

    def validate(self, path: str) -> Path:
        """Resolve ``path`` against the project root.

        Raises ToolError with PATH_OUTSIDE_ROOT when the path escapes the
        root (lexically or through symlinks) and PATH_NOT_FOUND when it
        does not exist.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.project_root / candidate
        normalized = Path(os.path.normpath(candidate.absolute()))
        root_abs = Path(os.path.normpath(self.project_root.absolute()))

        if not _is_within(normalized, root_abs):
            raise ToolError(
                ErrorCode.PATH_OUTSIDE_ROOT,
                f"Path is outside the project root: {path}",
            )
        if not normalized.exists():
            raise ToolError(ErrorCode.PATH_NOT_FOUND, f"Path not found: {path}")

        resolved = normalized.resolve()
        if not _is_within(resolved, self.project_root.resolve()):
            raise ToolError(
                ErrorCode.PATH_OUTSIDE_ROOT,
                f"Path is outside the project root: {path}",
            )
        return resolved


class Tool(ABC):
    """Base class of every tool: a name, a description and ``execute``."""

    name: str = ""
    description: str = ""

    def __init__(self, project_root: Path | str) -> None:
        self.path_manager = PathManager(Path(project_root))

    @property
    def project_root(self) -> Path:
        return self.path_manager.project_root

    @abstractmethod
    def execute(self, params: Mapping[str, Any]) -> ToolOutput:
        """Run the tool with JSON-like parameters."""

    @staticmethod
    def _param(
        params: Mapping[str, Any],
        key: str,
        kind: type | tuple[type, ...],
        default: Any = _MISSING,
    ) -> Any:
        """Fetch a typed parameter, raising INTERNAL_ERROR when invalid."""
        if not isinstance(params, Mapping):
            raise ToolError(ErrorCode.INTERNAL_ERROR, "Invalid params: expected an object")
        if key not in params or params[key] is None:
            if default is _MISSING:
                raise ToolError(
                    ErrorCode.INTERNAL_ERROR, f"Invalid params: missing field `{key}`"
                )
            return default
        value = params[key]
        if isinstance(value, bool) and bool not in (kind if isinstance(kind, tuple) else (kind,)):
            raise ToolError(
                ErrorCode.INTERNAL_ERROR, f"Invalid params: wrong type for field `{key}`"
            )
        if not isinstance(value, kind):
            raise ToolError(
                ErrorCode.INTERNAL_ERROR, f"Invalid params: wrong type for field `{key}`"
            )
        return value