"""Glob-based file search across the project tree."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Iterator, Mapping

from .base import ErrorCode, Tool, ToolError, ToolOutput

MAX_SEARCH_FILES_RESULTS = 100

_TEST_DIRS = ("test/", "tests/", "__tests__/", "__test__/", "spec/", "specs/")

_SKIPPED_DIRECTORIES = frozenset(
    {
        ".git", ".svn", ".hg",
        "node_modules", "target", "build", "dist",
        ".idea", ".vscode",
        "__pycache__", ".tox", "vendor",
    }
)

_ERROR_WILDCARDS = "wildcards are either regular `*` or recursive `**`"
_ERROR_RECURSIVE_WILDCARDS = "recursive wildcards must form a single path component"
_ERROR_INVALID_RANGE = "invalid range pattern"


def is_test_file(path: str) -> bool:
    """Whether a relative path looks like a test file or lives in a test dir."""
    normalized = path.replace("\\", "/")
    if any(test_dir in normalized for test_dir in _TEST_DIRS):
        return True
    filename = normalized.rsplit("/", 1)[-1]
    if "." not in filename:
        return False
    stem = filename.rsplit(".", 1)[0]
    return stem.endswith(("_test", "_spec", "Test", "Spec")) or stem.startswith("test_")


def is_skipped_directory(name: str) -> bool:
    """Whether a directory name is excluded from walks (VCS, build output...)."""
    return name in _SKIPPED_DIRECTORIES


def _pattern_error(position: int, message: str) -> ValueError:
    return ValueError(f"Pattern syntax error near position {position}: {message}")


def _class_escape(char: str) -> str:
    return char if char.isalnum() else "\\" + char


def _char_class(spec: str, negate: bool) -> str:
    singles: list[str] = []
    ranges: list[tuple[str, str]] = []
    k = 0
    while k < len(spec):
        if k + 3 <= len(spec) and spec[k + 1] == "-":
            ranges.append((spec[k], spec[k + 2]))
            k += 3
        else:
            singles.append(spec[k])
            k += 1
    body = "".join(_class_escape(c) for c in singles) + "".join(
        f"{_class_escape(low)}-{_class_escape(high)}"
        for low, high in ranges
        if low <= high
    )
    if not body:
        return "." if negate else "(?!)"
    return f"[{'^' if negate else ''}{body}]"


def _parse_bracket(pattern: str, i: int) -> tuple[str, int] | None:
    length = len(pattern)
    if i + 4 <= length and pattern[i + 1] == "!":
        close = pattern.find("]", i + 3)
        if close == -1:
            return None
        return _char_class(pattern[i + 2 : close], negate=True), close + 1
    if i + 3 <= length and pattern[i + 1] != "!":
        close = pattern.find("]", i + 2)
        if close == -1:
            return None
        return _char_class(pattern[i + 1 : close], negate=False), close + 1
    return None


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob into a regex to be used with ``fullmatch``.

    ``*`` and ``?`` also match ``/``; ``**`` must be a whole path component;
    ``[...]`` and ``[!...]`` are character sets. Raises ValueError on a
    malformed pattern.
    """
    parts: list[str] = []
    length = len(pattern)
    i = 0
    while i < length:
        char = pattern[i]
        if char == "?":
            parts.append(".")
            i += 1
        elif char == "*":
            start = i
            while i < length and pattern[i] == "*":
                i += 1
            count = i - start
            if count > 2:
                raise _pattern_error(start, _ERROR_WILDCARDS)
            if count == 2:
                if start != 0 and pattern[start - 1] != "/":
                    raise _pattern_error(i, _ERROR_RECURSIVE_WILDCARDS)
                if i < length and pattern[i] == "/":
                    i += 1
                    parts.append(r"(?:.*/|.*\Z)?")
                elif i == length:
                    parts.append(".*")
                else:
                    raise _pattern_error(i, _ERROR_RECURSIVE_WILDCARDS)
            else:
                parts.append(".*")
        elif char == "[":
            parsed = _parse_bracket(pattern, i)
            if parsed is None:
                raise _pattern_error(i, _ERROR_INVALID_RANGE)
            regex, i = parsed
            parts.append(regex)
        else:
            parts.append(re.escape(char))
            i += 1
    return re.compile("".join(parts), re.DOTALL)


def _dir_key(path: Path) -> tuple[int, int]:
    stat = path.stat()
    return stat.st_dev, stat.st_ino


def _walk_dir(directory: Path, ancestors: frozenset[tuple[int, int]]) -> Iterator[Path]:
    try:
        with os.scandir(directory) as iterator:
            entries = sorted(iterator, key=lambda entry: entry.name)
    except OSError:
        return
    for entry in entries:
        path = Path(entry.path)
        try:
            if entry.is_dir():
                if is_skipped_directory(entry.name):
                    continue
                key = _dir_key(path)
                if key in ancestors:
                    continue
                yield from _walk_dir(path, ancestors | {key})
            elif entry.is_file():
                yield path
        except OSError:
            continue


def _walk_files(root: Path) -> Iterator[Path]:
    """Yield files under ``root``, following links and pruning skipped dirs."""
    if is_skipped_directory(root.name):
        return
    try:
        key = _dir_key(root)
    except OSError:
        return
    yield from _walk_dir(root, frozenset({key}))


class SearchFilesTool(Tool):
    """Find files whose relative path or name matches a glob."""

    name = "search_files"
    description = "Search files by glob pattern"

    def __init__(
        self, project_root: Path | str, max_results: int = MAX_SEARCH_FILES_RESULTS
    ) -> None:
        super().__init__(project_root)
        self.max_results = max_results

    def execute(self, params: Mapping[str, Any]) -> ToolOutput:
        pattern_text = self._param(params, "pattern", str)
        path = self._param(params, "path", str, ".")
        exclude_tests = self._param(params, "exclude_test_files", bool, True)

        search_root = self.path_manager.validate(path)
        if search_root.is_file():
            raise ToolError(ErrorCode.PATH_NOT_DIRECTORY, f"Path is not a directory: {path}")

        try:
            matcher = compile_glob(pattern_text)
        except ValueError as exc:
            raise ToolError(ErrorCode.INVALID_PATTERN, f"Invalid glob pattern: {exc}") from None

        try:
            canonical_root = self.project_root.resolve(strict=True)
        except OSError as exc:
            raise ToolError(ErrorCode.INTERNAL_ERROR, str(exc)) from None

        files: list[str] = []
        truncated = False
        for entry in _walk_files(search_root):
            try:
                abs_path = entry.resolve(strict=True)
            except (OSError, RuntimeError):
                continue
            try:
                rel_path = abs_path.relative_to(canonical_root).as_posix().replace("\\", "/")
            except ValueError:
                continue
            if not (matcher.fullmatch(rel_path) or matcher.fullmatch(abs_path.name)):
                continue
            if exclude_tests and is_test_file(rel_path):
                continue
            files.append(rel_path)
            if len(files) >= self.max_results:
                truncated = True
                break

        files.sort()
        return ToolOutput(
            {"success": True, "files": files, "truncated": truncated},
            truncated=truncated,
        )