import json
from pathlib import Path
from typing import Any, Mapping

import pytest

from codescout.base import ErrorCode, Tool, ToolError, ToolOutput
from codescout.registry import ToolRegistry

MAIN_RS = (
    "use std::env;\n"
    "\n"
    "fn main() {\n"
    "    let args: Vec<String> = env::args().collect();\n"
    '    println!("{}", args.len());\n'
    "}\n"
)

LIB_RS = (
    "// Library module for the test fixture\n"
    "use std::fmt;\n"
    "\n"
    "pub fn add(a: u32, b: u32) -> u32 {\n"
    "    a + b\n"
    "}\n"
)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "docs").mkdir()
    (tmp_path / "src" / "main.rs").write_text(MAIN_RS)
    (tmp_path / "src" / "lib.rs").write_text(LIB_RS)
    (tmp_path / "docs" / "readme.md").write_text("# Readme\n")
    return tmp_path


class EchoTool(Tool):
    name = "echo"
    description = "Return the parameters"

    def execute(self, params: Mapping[str, Any]) -> ToolOutput:
        return ToolOutput({"echo": dict(params)})


def test_search_then_read(project):
    registry = ToolRegistry(project)
    found = registry.execute("search_content", {"pattern": "fn main"}).data
    assert found["matches"]
    first = found["matches"][0]
    assert first["file"] == "src/main.rs"
    start = max(first["line"] - 10, 1)
    end = first["line"] + 10
    read = registry.execute(
        "read_file", {"file": first["file"], "lines": {"ranges": [[start, end]]}}
    ).data
    assert read["success"] is True
    assert "fn main" in read["content"]


def test_search_files_info_read(project):
    registry = ToolRegistry(project)
    files = registry.execute("search_files", {"pattern": "**/*.rs"}).data["files"]
    assert files == ["src/lib.rs", "src/main.rs"]
    first = files[0]
    information = registry.execute("file_info", {"file": first}).data
    assert information["success"] is True
    read_end = min(50, information["lines"])
    read = registry.execute("read_file", {"file": first, "lines": f"1-{read_end}"}).data
    assert read["success"] is True
    assert len(read["content"].splitlines()) <= read_end
    assert read["content"].startswith("// Library module")


def test_error_recovery(project):
    registry = ToolRegistry(project)
    with pytest.raises(ToolError) as excinfo:
        registry.execute("read_file", {"file": "src/nonexistent.rs"})
    assert excinfo.value.code is ErrorCode.PATH_NOT_FOUND
    assert excinfo.value.code.value == "PATH_NOT_FOUND"

    files = registry.execute("search_files", {"pattern": "**/*.rs"}).data["files"]
    assert files
    retry = registry.execute("read_file", {"file": files[0]}).data
    assert retry["success"] is True


@pytest.mark.parametrize(
    "tool_name, params, expected",
    [
        ("read_file", {"file": "../../../etc/passwd"}, ErrorCode.PATH_OUTSIDE_ROOT),
        ("read_file", {"file": "nonexistent.rs"}, ErrorCode.PATH_NOT_FOUND),
        ("read_file", {"file": "src"}, ErrorCode.PATH_NOT_FILE),
        ("list_dir", {"path": "src/main.rs"}, ErrorCode.PATH_NOT_DIRECTORY),
        ("search_files", {"pattern": "**/*.rs["}, ErrorCode.INVALID_PATTERN),
        ("search_content", {"pattern": "(unclosed"}, ErrorCode.INVALID_PATTERN),
        (
            "read_file",
            {"file": "src/main.rs", "lines": {"ranges": [[20, 10]]}},
            ErrorCode.INVALID_LINE_RANGE,
        ),
    ],
)
def test_error_codes_machine_readable(project, tool_name, params, expected):
    registry = ToolRegistry(project)
    with pytest.raises(ToolError) as excinfo:
        registry.execute(tool_name, params)
    code = excinfo.value.code
    assert code is expected
    assert ErrorCode.from_str(code.value) is expected


@pytest.mark.parametrize(
    "tool_name, params",
    [
        ("search_files", {"pattern": "**/*.rs"}),
        ("read_file", {"file": "src/main.rs"}),
        ("search_content", {"pattern": "fn"}),
        ("list_dir", {"path": "."}),
        ("file_info", {"file": "src/main.rs"}),
    ],
)
def test_json_serialization(project, tool_name, params):
    output = ToolRegistry(project).execute(tool_name, params)
    assert output.success is True
    assert output.data["success"] is True
    assert json.loads(json.dumps(output.data)) == output.data
    assert json.loads(json.dumps(output.to_dict()))["data"] == output.data


def test_registry_has_all_tools(tmp_path):
    tools = ToolRegistry(tmp_path).list_tools()
    for name in ["search_files", "read_file", "search_content", "list_dir", "file_info"]:
        assert name in tools


def test_unknown_tool(tmp_path):
    with pytest.raises(ToolError) as excinfo:
        ToolRegistry(tmp_path).execute("no_such_tool", {})
    assert excinfo.value.code is ErrorCode.INTERNAL_ERROR
    assert "Unknown tool: no_such_tool" in excinfo.value.message


def test_register_custom_tool(tmp_path):
    registry = ToolRegistry(tmp_path)
    registry.register(EchoTool(tmp_path))
    assert "echo" in registry.list_tools()
    assert registry.execute("echo", {"a": 1}).data == {"echo": {"a": 1}}


def test_register_replaces_same_name(tmp_path):
    registry = ToolRegistry(tmp_path)
    before = len(registry.list_tools())

    class FakeList(EchoTool):
        name = "list_dir"

    registry.register(FakeList(tmp_path))
    assert len(registry.list_tools()) == before
    assert registry.execute("list_dir", {"x": 2}).data == {"echo": {"x": 2}}


def test_project_root_kept(tmp_path):
    assert ToolRegistry(str(tmp_path)).project_root == tmp_path