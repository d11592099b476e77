"""A name-indexed collection of the exploration tools."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from .base import ErrorCode, Tool, ToolError, ToolOutput
from .file_info import FileInfoTool
from .list_dir import ListDirTool
from .read_file import ReadFileTool
from .search_content import SearchContentTool
from .search_files import SearchFilesTool

_DEFAULT_TOOLS = (
    SearchFilesTool,
    ReadFileTool,
    SearchContentTool,
    ListDirTool,
    FileInfoTool,
)


class ToolRegistry:
    """Holds tools by name and dispatches calls to them."""

    def __init__(self, project_root: Path | str) -> None:
        self.project_root = Path(project_root)
        self._tools: dict[str, Tool] = {}
        for tool_class in _DEFAULT_TOOLS:
            self.register(tool_class(self.project_root))

    def register(self, tool: Tool) -> None:
        """Add a tool, replacing any tool with the same name."""
        self._tools[tool.name] = tool

    def execute(self, tool_name: str, params: Mapping[str, Any]) -> ToolOutput:
        """Run the named tool; unknown names raise INTERNAL_ERROR."""
        tool = self._tools.get(tool_name)
        if tool is None:
            raise ToolError(ErrorCode.INTERNAL_ERROR, f"Unknown tool: {tool_name}")
        return tool.execute(params)

    def list_tools(self) -> list[str]:
        """Names of the registered tools."""
        return list(self._tools)