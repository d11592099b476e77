"""Reading file contents, optionally restricted to line ranges."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable, Mapping

from .base import ErrorCode, Tool, ToolError, ToolOutput

MAX_READ_FILE_LINES = 2000
MAX_OUTPUT_BYTES = 50 * 1024
MAX_LARGE_FILE_SIZE = 10 * 1024 * 1024

_BINARY_SAMPLE_SIZE = 8192
_U32_MAX = 2**32 - 1
_NUMBER = re.compile(r"\+?[0-9]+")

BINARY_MESSAGE = "Binary file detected. Cannot display binary content."


def _lines(text: str) -> list[str]:
    """Split text into lines on ``\\n``, dropping a trailing ``\\r`` per line."""
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def _decode(raw: bytes) -> tuple[str, bool]:
    """Decode UTF-8, replacing invalid sequences; report whether any were lossy."""
    try:
        return raw.decode("utf-8"), False
    except UnicodeDecodeError:
        return raw.decode("utf-8", errors="replace"), True


def _truncate_bytes(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` UTF-8 bytes on a character boundary."""
    return text.encode("utf-8")[:limit].decode("utf-8", errors="ignore")


def _parse_number(text: str) -> int:
    candidate = text.strip()
    if not _NUMBER.fullmatch(candidate):
        raise ValueError(f"Invalid line number: {text}")
    value = int(candidate)
    if value > _U32_MAX:
        raise ValueError(f"Invalid line number: {text}")
    return value


def _is_line_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _U32_MAX


def parse_line_ranges(spec: str | Mapping[str, Any]) -> list[tuple[int, int]]:
    """Turn ``"1-5,8"`` or ``{"ranges": [[1, 5], [8, 8]]}`` into (start, end) pairs.

    Raises ValueError for an unparsable number in the string form and
    TypeError for a malformed structured form.
    """
    if isinstance(spec, str):
        result: list[tuple[int, int]] = []
        for part in spec.split(","):
            part = part.strip()
            if "-" in part:
                start_text, end_text = part.split("-", 1)
                result.append((_parse_number(start_text), _parse_number(end_text)))
            else:
                line = _parse_number(part)
                result.append((line, line))
        return result

    if isinstance(spec, Mapping):
        ranges = spec.get("ranges")
        if isinstance(ranges, list) and all(
            isinstance(pair, list) and len(pair) == 2 and all(map(_is_line_number, pair))
            for pair in ranges
        ):
            return [(pair[0], pair[1]) for pair in ranges]

    raise TypeError("lines must be a string or an object with `ranges`")


def is_binary(data: bytes) -> bool:
    """Detect NUL bytes; large inputs are sampled at the start, middle and end."""
    if not data:
        return False
    sample = _BINARY_SAMPLE_SIZE
    if len(data) < sample * 3:
        return b"\x00" in data
    starts = (0, len(data) // 2, max(len(data) - sample, 0))
    return any(b"\x00" in data[start : start + sample] for start in starts)


def merge_ranges(ranges: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    """Sort ranges by start and merge overlapping or adjacent ones."""
    merged: list[tuple[int, int]] = []
    for start, end in sorted(ranges, key=lambda pair: pair[0]):
        if merged and start <= merged[-1][1] + 1:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def _read_bytes(path: Path, shown: str) -> bytes:
    try:
        return path.read_bytes()
    except PermissionError:
        raise ToolError(ErrorCode.PERMISSION_DENIED, f"Permission denied: {shown}") from None
    except OSError as exc:
        raise ToolError(ErrorCode.INTERNAL_ERROR, str(exc)) from None


class ReadFileTool(Tool):
    """Read a text file, whole or by line ranges, with size limits."""

    name = "read_file"
    description = "Read file content with optional line ranges"

    def __init__(
        self,
        project_root: Path | str,
        max_lines: int = MAX_READ_FILE_LINES,
        max_output_bytes: int = MAX_OUTPUT_BYTES,
        max_large_file_size: int = MAX_LARGE_FILE_SIZE,
    ) -> None:
        super().__init__(project_root)
        self.max_lines = max_lines
        self.max_output_bytes = max_output_bytes
        self.max_large_file_size = max_large_file_size

    def _select(
        self, all_lines: list[str], spec: str | Mapping[str, Any]
    ) -> tuple[list[str], str]:
        try:
            ranges = parse_line_ranges(spec)
        except TypeError as exc:
            raise ToolError(ErrorCode.INTERNAL_ERROR, f"Invalid params: {exc}") from None
        except ValueError as exc:
            raise ToolError(ErrorCode.INVALID_LINE_RANGE, str(exc)) from None

        for start, end in ranges:
            if start == 0:
                raise ToolError(ErrorCode.INVALID_LINE_RANGE, "Line numbers must start from 1")
            if start > end:
                raise ToolError(
                    ErrorCode.INVALID_LINE_RANGE,
                    f"Invalid range: start ({start}) > end ({end})",
                )

        merged = merge_ranges(ranges)
        total = len(all_lines)
        selected = [line for start, end in merged for line in all_lines[start - 1 : end]]

        descriptions = []
        for start, end in merged:
            actual_end = min(end, total)
            descriptions.append(str(start) if start == actual_end else f"{start}-{actual_end}")
        return selected, ",".join(descriptions)

    def execute(self, params: Mapping[str, Any]) -> ToolOutput:
        file = self._param(params, "file", str)
        spec = self._param(params, "lines", (str, Mapping), None)

        resolved = self.path_manager.validate(file)
        if resolved.is_dir():
            raise ToolError(ErrorCode.PATH_NOT_FILE, f"Path is a directory: {file}")

        raw = _read_bytes(resolved, file)

        if is_binary(raw):
            return ToolOutput(
                {"success": True, "content": BINARY_MESSAGE, "lines": "all", "truncated": False}
            )

        if spec is None and len(raw) > self.max_large_file_size:
            size_mb = len(raw) / (1024.0 * 1024.0)
            message = (
                f"File is too large ({size_mb:.1f} MB). "
                "Please specify a line range to read a portion of the file."
            )
            return ToolOutput(
                {"success": True, "content": message, "lines": "all", "truncated": False}
            )

        text, lossy = _decode(raw)
        all_lines = _lines(text)

        if spec is None:
            selected, description = all_lines, "all"
        else:
            selected, description = self._select(all_lines, spec)

        truncated = len(selected) > self.max_lines
        content = "\n".join(selected[: self.max_lines])
        if len(content.encode("utf-8")) > self.max_output_bytes:
            content = _truncate_bytes(content, self.max_output_bytes)
            truncated = True

        return ToolOutput(
            {"success": True, "content": content, "lines": description, "truncated": truncated},
            truncated=truncated,
            metadata={"encoding_lossy": True} if lossy else None,
        )