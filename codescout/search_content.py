"""Regex search over the text files of a project."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .base import ErrorCode, Tool, ToolError, ToolOutput
from .read_file import _decode, _lines, is_binary
from .search_files import _walk_files, compile_glob, is_test_file

MAX_SEARCH_CONTENT_RESULTS = 100
MAX_SEARCH_FILE_SIZE = 1024 * 1024
MAX_CONTEXT_LINES = 5


@dataclass
class ContentMatch:
    """A matching line, with optional surrounding context lines."""

    file: str
    line: int
    content: str
    context_before: list[str] | None = None
    context_after: list[str] | None = None


def _as_dict(match: ContentMatch) -> dict[str, Any]:
    result: dict[str, Any] = {"file": match.file, "line": match.line, "content": match.content}
    if match.context_before is not None:
        result["context_before"] = match.context_before
    if match.context_after is not None:
        result["context_after"] = match.context_after
    return result


class SearchContentTool(Tool):
    """Search file contents line by line with a regular expression."""

    name = "search_content"
    description = "Search text content in files with regex"

    def __init__(
        self,
        project_root: Path | str,
        max_results: int = MAX_SEARCH_CONTENT_RESULTS,
        max_file_size: int = MAX_SEARCH_FILE_SIZE,
        max_context_lines: int = MAX_CONTEXT_LINES,
    ) -> None:
        super().__init__(project_root)
        self.max_results = max_results
        self.max_file_size = max_file_size
        self.max_context_lines = max_context_lines

    def execute(self, params: Mapping[str, Any]) -> ToolOutput:
        pattern = self._param(params, "pattern", str)
        file_pattern_text = self._param(params, "file_pattern", str, None)
        exclude_paths = self._param(params, "exclude_paths", list, [])
        exclude_tests = self._param(params, "exclude_test_files", bool, True)
        context_lines = self._param(params, "context_lines", int, 0)
        if context_lines < 0 or not all(isinstance(p, str) for p in exclude_paths):
            raise ToolError(ErrorCode.INTERNAL_ERROR, "Invalid params: wrong field type")

        try:
            regex = re.compile(pattern)
        except re.error as exc:
            raise ToolError(ErrorCode.INVALID_PATTERN, f"Invalid regex: {exc}") from None

        context_lines = min(context_lines, self.max_context_lines)

        file_pattern = None
        if file_pattern_text is not None:
            try:
                file_pattern = compile_glob(file_pattern_text)
            except ValueError as exc:
                raise ToolError(
                    ErrorCode.INVALID_PATTERN, f"Invalid file pattern: {exc}"
                ) from None

        excludes = []
        for text in exclude_paths:
            try:
                excludes.append(compile_glob(text))
            except ValueError:
                continue

        try:
            canonical_root = self.project_root.resolve(strict=True)
        except OSError as exc:
            raise ToolError(ErrorCode.INTERNAL_ERROR, str(exc)) from None

        entries = sorted(_walk_files(canonical_root), key=lambda path: path.parts)

        matches: list[ContentMatch] = []
        truncated = False
        for entry in entries:
            if truncated:
                break
            try:
                abs_path = entry.resolve(strict=True)
                rel_path = abs_path.relative_to(canonical_root).as_posix()
            except (OSError, RuntimeError, ValueError):
                continue

            if file_pattern is not None and not file_pattern.fullmatch(abs_path.name):
                continue
            if any(exclude.fullmatch(rel_path) for exclude in excludes):
                continue
            if exclude_tests and is_test_file(rel_path):
                continue

            try:
                if abs_path.stat().st_size > self.max_file_size:
                    continue
                raw = abs_path.read_bytes()
            except OSError:
                continue
            if is_binary(raw):
                continue

            all_lines = _lines(_decode(raw)[0])
            for index, line in enumerate(all_lines):
                if not regex.search(line):
                    continue
                before = after = None
                if context_lines > 0:
                    before = all_lines[max(index - context_lines, 0) : index]
                    after = all_lines[index + 1 : index + 1 + context_lines]
                matches.append(ContentMatch(rel_path, index + 1, line.strip(), before, after))
                if len(matches) >= self.max_results:
                    truncated = True
                    break

        return ToolOutput(
            {
                "success": True,
                "matches": [_as_dict(match) for match in matches],
                "truncated": truncated,
            },
            truncated=truncated,
        )