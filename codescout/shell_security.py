"""Validation rules that keep shell commands read-only and inside the project."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

from .base import ErrorCode, ToolError
from .shell_parsing import (
    _skip_quoted,
    is_redirect_safe,
    is_redirect_token,
    split_commands,
    split_pipe_segments,
)

WHITELIST = (
    "cat", "head", "tail", "less",
    "grep", "egrep", "fgrep", "find",
    "ls", "tree",
    "wc", "sort", "uniq", "cut", "tr",
    "awk", "sed",
    "file", "stat",
    "echo", "xargs",
    "type", "dir", "findstr",
)

_WHITELIST_HINT = (
    "cat head tail less grep egrep fgrep find ls tree wc sort uniq cut tr "
    "awk sed file stat echo type dir findstr"
)

_BACKGROUND = re.compile(r"(?:^|[^>&])&(?:[^&]|$)")
_SINGLE_WHITESPACE = re.compile(r"\s")


class ShellSecurityError(ToolError):
    """A command rejected by the shell security rules."""

    def __init__(
        self, message: str, code: ErrorCode = ErrorCode.SHELL_DANGEROUS_OPERATOR
    ) -> None:
        super().__init__(code, message)


def _main_command(words: Iterable[str]) -> str:
    """First word that is not a redirect, or an empty string."""
    return next((word for word in words if not is_redirect_token(word)), "")


def check_sed_inplace(command: str) -> None:
    """Reject ``sed -i`` style in-place editing."""
    for token in command.split()[1:]:
        if token.startswith("-i"):
            raise ShellSecurityError("禁止 sed -i 原地修改 — 仅允许只读操作")


def check_whitelist(command: str) -> str:
    """Return the command's program name, raising if it is not whitelisted.

    Leading redirects such as ``2>/dev/null`` are skipped.
    """
    trimmed = command.strip()
    main_cmd = _main_command(_SINGLE_WHITESPACE.split(trimmed))
    if main_cmd not in WHITELIST:
        raise ShellSecurityError(
            f"命令 '{main_cmd}' 不在白名单中。可用命令：{_WHITELIST_HINT}",
            ErrorCode.SHELL_CMD_NOT_ALLOWED,
        )
    if main_cmd == "sed":
        try:
            check_sed_inplace(trimmed)
        except ShellSecurityError as exc:
            raise ShellSecurityError(exc.message, ErrorCode.SHELL_CMD_NOT_ALLOWED) from None
    return main_cmd


def _has_background(command: str) -> bool:
    trimmed = command.strip()
    if trimmed.endswith("&"):
        return not trimmed[:-1].rstrip().endswith("&")
    return _BACKGROUND.search(command.replace("&&", "")) is not None


def check_dangerous_operators(command: str, project_root: Path | str) -> None:
    """Reject tee, writing redirects, path traversal, system()/exec() and ``&``."""
    root = Path(project_root)

    if any(token.strip("'\"") == "tee" for token in command.split()):
        raise ShellSecurityError("禁止 tee — 可写入文件。如需查看内容请使用 cat/head/tail")

    length = len(command)
    i = 0
    while i < length:
        char = command[i]
        if char in "'\"":
            i = _skip_quoted(command, i)
            continue

        if char == ">":
            if command.startswith(">>", i):
                raise ShellSecurityError("禁止追加重定向 >> — 仅支持只读操作")
            j = i + 1
            while j < length and command[j].isspace():
                j += 1
            if j < length:
                if command[j] == "&":
                    target = "&"
                else:
                    start = j
                    while (
                        j < length
                        and not command[j].isspace()
                        and command[j] not in "|;&"
                    ):
                        j += 1
                    target = command[start:j]
                if not is_redirect_safe(target, root):
                    raise ShellSecurityError(
                        f"禁止重定向到工作区文件 '{target}' — 此操作会修改项目文件。"
                        "可改用 > /dev/null 抑制输出"
                    )
            i = j
            continue

        if command.startswith(("../", "..\\"), i):
            raise ShellSecurityError("禁止路径穿越 ../ — 仅允许项目目录内的文件")

        i += 1

    if "system(" in command or "exec(" in command:
        raise ShellSecurityError(
            "禁止 system()/exec() — 即使引号内也不允许（可通过 awk system() 绕过白名单）"
        )

    if _has_background(command):
        raise ShellSecurityError("禁止后台执行 & — 仅允许前台同步执行")


def check_pipe_commands(command: str, project_root: Path | str) -> list[str]:
    """Validate each pipeline stage; return the program names of the stages."""
    if "|" not in command:
        return []

    commands: list[str] = []
    for segment in split_pipe_segments(command):
        trimmed = segment.strip()
        if not trimmed:
            continue
        main_cmd = _main_command(trimmed.split())
        if not main_cmd:
            continue
        if main_cmd == "tee":
            raise ShellSecurityError("tee command detected (dangerous: can write files)")
        if main_cmd not in WHITELIST:
            raise ShellSecurityError(
                f"Pipe segment command '{main_cmd}' is not in the whitelist",
                ErrorCode.SHELL_CMD_NOT_ALLOWED,
            )
        if main_cmd == "sed":
            check_sed_inplace(trimmed)
        check_dangerous_operators(trimmed, project_root)
        commands.append(main_cmd)
    return commands


def validate_command(command: str, project_root: Path | str) -> list[str]:
    """Validate every ``;``/``&&``/``||`` segment; return the checked segments."""
    validated: list[str] = []
    for segment in split_commands(command):
        trimmed = segment.strip()
        if not trimmed:
            continue
        check_whitelist(trimmed)
        check_dangerous_operators(trimmed, project_root)
        check_pipe_commands(trimmed, project_root)
        validated.append(trimmed)
    return validated