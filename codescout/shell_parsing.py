"""Quote-aware splitting and redirect helpers for restricted shell commands."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

_SAFE_SYSTEM_PREFIXES = ("/tmp/", "/dev/", "/proc/", "/sys/", "/var/tmp/", "/run/")


def _canonical(path: Path) -> Path | None:
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return None


def _outside(target: str, project_root: Path) -> bool | None:
    """True/False when both paths can be canonicalized, else None."""
    canon_target = _canonical(Path(target))
    canon_root = _canonical(Path(project_root))
    if canon_target is None or canon_root is None:
        return None
    return not (canon_target == canon_root or canon_root in canon_target.parents)


def is_redirect_safe(target: str, project_root: Path | str) -> bool:
    """Whether an output redirect to ``target`` cannot modify the workspace.

    fd redirects and device files are safe, absolute paths outside the
    project are allowed, and relative paths (which land in the workspace)
    are blocked.
    """
    project_root = Path(project_root)
    if target.startswith("&"):
        return True
    if (
        target == "/dev/null"
        or target.startswith("/dev/fd/")
        or target in ("/dev/stdout", "/dev/stderr")
    ):
        return True

    if target.startswith("/"):
        outside = _outside(target, project_root)
        if outside is not None:
            return outside
        if target.startswith(_SAFE_SYSTEM_PREFIXES):
            return True
        return not target.startswith(str(project_root))

    if len(target) >= 2 and target[1] == ":":
        outside = _outside(target, project_root)
        return True if outside is None else outside

    return False


def _skip_quoted(text: str, start: int) -> int:
    """Return the index just past the quoted run opening at ``start``."""
    quote = text[start]
    i = start + 1
    length = len(text)
    while i < length:
        if quote == '"' and text[i] == "\\" and i + 1 < length:
            i += 2
        elif text[i] == quote:
            return i + 1
        else:
            i += 1
    return i


def _split_outside_quotes(command: str, operators: Sequence[str]) -> list[str]:
    segments: list[str] = []
    start = 0
    i = 0
    while i < len(command):
        if command[i] in "'\"":
            i = _skip_quoted(command, i)
            continue
        operator = next((op for op in operators if command.startswith(op, i)), None)
        if operator is not None:
            segments.append(command[start:i])
            i += len(operator)
            start = i
            continue
        i += 1
    segments.append(command[start:])
    return segments


def split_commands(command: str) -> list[str]:
    """Split by ``;``, ``&&`` and ``||`` outside quotes."""
    return _split_outside_quotes(command, (";", "&&", "||"))


def split_pipe_segments(command: str) -> list[str]:
    """Split by ``|`` outside quotes."""
    return _split_outside_quotes(command, ("|",))


def is_redirect_token(token: str) -> bool:
    """Whether a whitespace-delimited token is a redirect rather than a command."""
    if token.startswith(">") or token.endswith(">") or ">&" in token:
        return True
    return token == "/dev/null" or token.startswith("/dev/fd/") or token.startswith("&")


def _trim_end(text: str, suffix: str) -> str:
    while suffix and text.endswith(suffix):
        text = text[: -len(suffix)]
    return text


def inject_exclude_paths(command: str, exclude_paths: Iterable[str]) -> str:
    """Add exclusion options for ``grep``-family and ``find`` commands."""
    exclude_paths = list(exclude_paths)
    if not exclude_paths:
        return command

    trimmed = command.strip()
    words = trimmed.split()
    main_cmd = words[0] if words else ""

    if main_cmd in ("grep", "egrep", "fgrep"):
        parts = trimmed.split(" ", 1)
        if len(parts) < 2:
            return command
        cmd_name, rest = parts
        excludes = " ".join(
            f"--exclude-dir={_trim_end(_trim_end(path, '/*'), chr(92) + '*')}"
            for path in exclude_paths
        )
        return f"{cmd_name} {excludes} {rest}"

    if main_cmd == "find":
        return trimmed + "".join(f" -not -path './{path}'" for path in exclude_paths)

    return command