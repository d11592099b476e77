"""File metadata and simple code statistics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from .base import ErrorCode, Tool, ToolError, ToolOutput
from .read_file import _decode, _lines, is_binary

MAX_HEADER_LINES = 20

CODE_EXTENSIONS = (
    "rs", "java", "py", "go", "js", "jsx", "mjs", "cjs",
    "ts", "tsx", "c", "h", "cpp", "cc", "cxx", "hpp", "hh", "hxx",
    "cs", "rb", "php", "swift", "kt", "kts", "scala",
    "sh", "bash", "zsh", "lua", "pl", "pm", "r", "R", "dart",
    "ex", "exs", "hs", "ml", "mli",
)

CONFIG_EXTENSIONS = (
    "json", "yaml", "yml", "toml", "xml", "ini", "cfg", "properties", "env",
)

TEXT_EXTENSIONS = ("md", "txt", "rst", "csv", "log")

_IMPORT_PREFIXES = ("use ", "import ", "from ", "require", "#include")

_DECLARATION_PREFIXES = (
    "class ", "struct ", "enum ", "interface ", "trait ",
    "fn ", "def ", "function ", "pub fn ", "pub struct ",
    "pub enum ", "pub trait ", "pub const ", "const ",
)

_FUNCTION_MARKERS = ("fn ", "def ", "function ", "func ")


class FileType(str, Enum):
    """Broad category of a path."""

    DIRECTORY = "directory"
    CODE = "code"
    TEXT = "text"
    CONFIG = "config"
    FILE = "file"


@dataclass(frozen=True)
class CommentStyle:
    """Comment delimiters of a language; absent delimiters are None."""

    single_line: str | None = None
    multi_line_start: str | None = None
    multi_line_end: str | None = None


@dataclass
class Stats:
    """Line counts and rough structure counts of a source file."""

    lines_of_code: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    top_level_declarations: int = 0
    functions: int = 0
    imports: int = 0


@dataclass
class HeaderComment:
    """The comment block at the top of a source file."""

    present: bool = False
    lines: int = 0
    content: str = ""


_C_STYLE = CommentStyle("//", "/*", "*/")
_HASH_STYLE = CommentStyle("#")
_LUA_STYLE = CommentStyle("--", "--[[", "]]")
_HASKELL_STYLE = CommentStyle("--", "{-", "-}")
_ML_STYLE = CommentStyle(None, "(*", "*)")

_COMMENT_STYLES: dict[str, CommentStyle] = {
    **{
        ext: _C_STYLE
        for ext in (
            "rs", "java", "c", "h", "cpp", "cc", "cxx", "hpp", "hh", "hxx",
            "go", "js", "jsx", "mjs", "cjs", "ts", "tsx",
            "swift", "kt", "kts", "scala", "cs", "php", "dart",
        )
    },
    **{
        ext: _HASH_STYLE
        for ext in (
            "py", "rb", "sh", "bash", "zsh", "yaml", "yml", "toml",
            "pl", "pm", "r", "R", "ex", "exs",
        )
    },
    "lua": _LUA_STYLE,
    "hs": _HASKELL_STYLE,
    "ml": _ML_STYLE,
    "mli": _ML_STYLE,
}


def detect_file_type(extension: str | None) -> FileType:
    """Classify an extension (without the dot) as code, config, text or file."""
    if extension is None:
        return FileType.FILE
    if extension in CODE_EXTENSIONS:
        return FileType.CODE
    if extension in CONFIG_EXTENSIONS:
        return FileType.CONFIG
    if extension in TEXT_EXTENSIONS:
        return FileType.TEXT
    return FileType.FILE


def detect_comment_style(extension: str | None) -> CommentStyle | None:
    """Return the comment style for an extension, or None if unknown."""
    if extension is None:
        return None
    return _COMMENT_STYLES.get(extension)


def _closes_on_same_line(trimmed: str, style: CommentStyle) -> bool:
    start, end = style.multi_line_start, style.multi_line_end
    return (
        start is not None
        and end is not None
        and end in trimmed
        and trimmed.find(end) > trimmed.find(start)
    )


def extract_header_comment(content: str, style: CommentStyle) -> HeaderComment:
    """Collect up to 20 leading comment lines, skipping a shebang line."""
    lines = _lines(content)
    if not lines:
        return HeaderComment()

    start = 1 if lines[0].startswith("#!") else 0
    collected: list[str] = []
    in_multi = False

    for line in lines[start:]:
        if len(collected) >= MAX_HEADER_LINES:
            break
        trimmed = line.strip()
        if not trimmed:
            if collected:
                break
            continue
        if in_multi:
            collected.append(line)
            if style.multi_line_end is not None and style.multi_line_end in trimmed:
                in_multi = False
            continue
        if style.single_line is not None and trimmed.startswith(style.single_line):
            collected.append(line)
            continue
        if style.multi_line_start is not None and trimmed.startswith(style.multi_line_start):
            collected.append(line)
            in_multi = not _closes_on_same_line(trimmed, style)
            continue
        break

    if not collected:
        return HeaderComment()
    return HeaderComment(present=True, lines=len(collected), content="\n".join(collected))


def analyze_code_stats(content: str, style: CommentStyle) -> Stats:
    """Count code, comment and blank lines plus declarations, functions, imports."""
    stats = Stats()
    in_multi = False

    for line in _lines(content):
        trimmed = line.strip()
        if not trimmed:
            stats.blank_lines += 1
            continue

        if in_multi:
            stats.comment_lines += 1
            if style.multi_line_end is not None and style.multi_line_end in trimmed:
                in_multi = False
            continue

        if style.multi_line_start is not None and trimmed.startswith(style.multi_line_start):
            stats.comment_lines += 1
            in_multi = style.multi_line_end is None or not _closes_on_same_line(trimmed, style)
            continue

        if style.single_line is not None and trimmed.startswith(style.single_line):
            stats.comment_lines += 1
            continue

        stats.lines_of_code += 1

        if trimmed.startswith(_IMPORT_PREFIXES):
            stats.imports += 1

        indented = line.startswith((" ", "\t"))
        if not indented and trimmed.startswith(_DECLARATION_PREFIXES):
            stats.top_level_declarations += 1

        if any(marker in trimmed for marker in _FUNCTION_MARKERS) and (
            "(" in trimmed or "{" in trimmed
        ):
            stats.functions += 1

    return stats


def extract_shebang(content: str) -> str | None:
    """Return the first line if it is a ``#!`` line."""
    lines = _lines(content)
    if lines and lines[0].startswith("#!"):
        return lines[0]
    return None


def _extension(path: Path) -> str | None:
    name = path.name
    dot = name.rfind(".")
    if dot <= 0:
        return None
    return name[dot + 1 :]


def _permission_or_internal(exc: OSError, shown: str) -> ToolError:
    if isinstance(exc, PermissionError):
        return ToolError(ErrorCode.PERMISSION_DENIED, f"Permission denied: {shown}")
    return ToolError(ErrorCode.INTERNAL_ERROR, str(exc))


class FileInfoTool(Tool):
    """Report a path's type, size, line count and, for code, statistics."""

    name = "file_info"
    description = "Get file metadata and code statistics"

    def execute(self, params: Mapping[str, Any]) -> ToolOutput:
        file = self._param(params, "file", str)
        resolved = self.path_manager.validate(file)

        try:
            canonical_root = self.project_root.resolve(strict=True)
        except OSError as exc:
            raise ToolError(ErrorCode.INTERNAL_ERROR, str(exc)) from None
        try:
            relative = resolved.relative_to(canonical_root)
            rel_path = "" if relative == Path(".") else str(relative).replace("\\", "/")
        except ValueError:
            rel_path = file

        try:
            info = resolved.stat()
        except OSError as exc:
            raise _permission_or_internal(exc, file) from None

        if resolved.is_dir():
            return ToolOutput(
                {
                    "success": True,
                    "path": rel_path,
                    "type": FileType.DIRECTORY.value,
                    "size": 0,
                    "lines": 0,
                }
            )

        extension = _extension(resolved)
        file_type = detect_file_type(extension)

        try:
            raw = resolved.read_bytes()
        except OSError as exc:
            raise _permission_or_internal(exc, file) from None

        if is_binary(raw):
            return ToolOutput(
                {
                    "success": True,
                    "path": rel_path,
                    "type": FileType.FILE.value,
                    "size": info.st_size,
                    "lines": 0,
                }
            )

        text, _ = _decode(raw)
        data: dict[str, Any] = {
            "success": True,
            "path": rel_path,
            "type": file_type.value,
            "size": info.st_size,
            "lines": len(_lines(text)),
        }

        if file_type is FileType.CODE:
            style = detect_comment_style(extension)
            if style is not None:
                data["stats"] = asdict(analyze_code_stats(text, style))
                data["header_comment"] = asdict(extract_header_comment(text, style))
            shebang = extract_shebang(text)
            if shebang is not None:
                data["shebang"] = shebang

        return ToolOutput(data)