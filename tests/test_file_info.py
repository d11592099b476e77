from pathlib import Path

import pytest

from codescout.base import ErrorCode, ToolError
from codescout.file_info import (
    CODE_EXTENSIONS,
    CONFIG_EXTENSIONS,
    TEXT_EXTENSIONS,
    CommentStyle,
    FileInfoTool,
    FileType,
    HeaderComment,
    Stats,
    analyze_code_stats,
    detect_comment_style,
    detect_file_type,
    extract_header_comment,
    extract_shebang,
)

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
    "// It exposes a small API\n"
    "// used by the tests.\n"
    "// Nothing here is real.\n"
    "// End of header.\n"
    "use std::collections::HashMap;\n"
    "use std::fmt;\n"
    "use std::io;\n"
    "\n"
    "pub struct Registry {\n"
    "    items: HashMap<String, u32>,\n"
    "}\n"
    "\n"
    "impl Registry {\n"
    "    pub fn new() -> Self {\n"
    "        Registry { items: HashMap::new() }\n"
    "    }\n"
    "}\n"
    "\n"
    "pub fn add(a: u32, b: u32) -> u32 {\n"
    "    a + b\n"
    "}\n"
)

HELPER_PY = (
    "# Helper utilities\n"
    "# for the fixture\n"
    "import os\n"
    "\n"
    "\n"
    "def helper():\n"
    "    return os.getcwd()\n"
)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "src" / "utils").mkdir(parents=True)
    (tmp_path / "docs").mkdir()
    (tmp_path / "src" / "main.rs").write_text(MAIN_RS)
    (tmp_path / "src" / "lib.rs").write_text(LIB_RS)
    (tmp_path / "src" / "utils" / "helper.py").write_text(HELPER_PY)
    (tmp_path / "src" / "utils" / "config.yaml").write_text("name: demo\nlevel: 3\n")
    (tmp_path / "docs" / "readme.md").write_text("# Readme\n\nSome text.\n")
    (tmp_path / "binary_file.bin").write_bytes(b"\x00\x01\x02binary\x00data")
    (tmp_path / ".hidden_file").write_text("hidden\n")
    return tmp_path


def info(root: Path, file: str) -> dict:
    return FileInfoTool(root).execute({"file": file}).data


def test_code_file_basic(project):
    data = info(project, "src/main.rs")
    assert data["success"] is True
    assert data["type"] == "code"
    assert data["size"] == len(MAIN_RS.encode())
    assert data["lines"] == 6
    assert data["path"] == "src/main.rs"


def test_code_stats_accuracy(project):
    data = info(project, "src/lib.rs")
    stats = data["stats"]
    assert stats["comment_lines"] == 5
    assert stats["blank_lines"] == 3
    assert stats["lines_of_code"] == 14
    total = stats["lines_of_code"] + stats["comment_lines"] + stats["blank_lines"]
    assert total == data["lines"]


def test_config_file(project):
    data = info(project, "src/utils/config.yaml")
    assert data["type"] == "config"
    assert "stats" not in data
    assert data["lines"] == 2


def test_text_file(project):
    data = info(project, "docs/readme.md")
    assert data["type"] == "text"
    assert "stats" not in data


def test_directory(project):
    data = info(project, "src")
    assert data["type"] == "directory"
    assert data["size"] == 0
    assert "stats" not in data
    assert "header_comment" not in data


def test_project_root_has_empty_relative_path(project):
    data = info(project, ".")
    assert data["path"] == ""
    assert data["type"] == "directory"


def test_header_comment_present(project):
    hc = info(project, "src/lib.rs")["header_comment"]
    assert hc["present"] is True
    assert hc["lines"] == 5
    assert "Library module" in hc["content"]


def test_header_comment_absent(project):
    hc = info(project, "src/main.rs")["header_comment"]
    assert hc["present"] is False
    assert hc["lines"] == 0


def test_python_comments(project):
    data = info(project, "src/utils/helper.py")
    assert data["type"] == "code"
    assert data["stats"]["comment_lines"] >= 2


def test_import_counting(project):
    assert info(project, "src/lib.rs")["stats"]["imports"] == 3


def test_function_counting(project):
    assert info(project, "src/main.rs")["stats"]["functions"] >= 1
    assert info(project, "src/lib.rs")["stats"]["functions"] == 2


def test_top_level_declarations(project):
    assert info(project, "src/lib.rs")["stats"]["top_level_declarations"] == 2


def test_file_not_found(project):
    with pytest.raises(ToolError) as excinfo:
        info(project, "nonexistent.rs")
    assert excinfo.value.code is ErrorCode.PATH_NOT_FOUND


def test_path_traversal(project):
    with pytest.raises(ToolError) as excinfo:
        info(project, "../../../etc/passwd")
    assert excinfo.value.code is ErrorCode.PATH_OUTSIDE_ROOT


def test_unknown_extension(project):
    assert info(project, ".hidden_file")["type"] == "file"


def test_missing_file_param(project):
    with pytest.raises(ToolError) as excinfo:
        FileInfoTool(project).execute({})
    assert excinfo.value.code is ErrorCode.INTERNAL_ERROR


def test_header_comment_truncation(tmp_path):
    content = "".join(f"// Comment line {i}\n" for i in range(1, 31))
    content += "fn code_starts_here() {}\n"
    (tmp_path / "many_comments.rs").write_text(content)
    hc = info(tmp_path, "many_comments.rs")["header_comment"]
    assert hc["lines"] == 20


def test_multiline_comment(tmp_path):
    content = (
        "/*\n * Multi-line comment\n * Another line\n */\n"
        "public class Test {\n    void method() {}\n}\n"
    )
    (tmp_path / "Test.java").write_text(content)
    stats = info(tmp_path, "Test.java")["stats"]
    assert stats["comment_lines"] >= 3
    assert stats["comment_lines"] == 4
    assert stats["lines_of_code"] == 3


def test_shebang_with_comment(tmp_path):
    content = (
        "#!/usr/bin/env python3\n# Helper utilities\n# For testing\n"
        "# Third comment\nimport os\n"
    )
    (tmp_path / "script.py").write_text(content)
    data = info(tmp_path, "script.py")
    assert data["shebang"] == "#!/usr/bin/env python3"
    assert data["header_comment"]["present"] is True
    assert data["header_comment"]["lines"] == 3


def test_shebang_no_comment(tmp_path):
    (tmp_path / "script.sh").write_text('#!/bin/bash\necho "Hello"\n')
    data = info(tmp_path, "script.sh")
    assert data["shebang"] == "#!/bin/bash"
    assert data["header_comment"]["present"] is False


def test_no_shebang(project):
    assert "shebang" not in info(project, "src/main.rs")


@pytest.mark.parametrize(
    "extension, expected",
    [
        ("rs", FileType.CODE),
        ("java", FileType.CODE),
        ("py", FileType.CODE),
        ("go", FileType.CODE),
        ("js", FileType.CODE),
        ("ts", FileType.CODE),
        ("json", FileType.CONFIG),
        ("yaml", FileType.CONFIG),
        ("toml", FileType.CONFIG),
        ("md", FileType.TEXT),
        ("txt", FileType.TEXT),
        ("xyz", FileType.FILE),
        (None, FileType.FILE),
    ],
)
def test_file_type_detection(extension, expected):
    assert detect_file_type(extension) is expected


@pytest.mark.parametrize("extension", CODE_EXTENSIONS)
def test_all_code_extensions_recognized(extension):
    assert detect_file_type(extension) is FileType.CODE


@pytest.mark.parametrize("extension", CONFIG_EXTENSIONS)
def test_all_config_extensions_recognized(extension):
    assert detect_file_type(extension) is FileType.CONFIG


@pytest.mark.parametrize("extension", TEXT_EXTENSIONS)
def test_all_text_extensions_recognized(extension):
    assert detect_file_type(extension) is FileType.TEXT


def test_comment_styles():
    assert detect_comment_style("rs") == CommentStyle("//", "/*", "*/")
    assert detect_comment_style("py") == CommentStyle("#", None, None)
    assert detect_comment_style("lua") == CommentStyle("--", "--[[", "]]")
    assert detect_comment_style("hs") == CommentStyle("--", "{-", "-}")
    assert detect_comment_style("ml") == CommentStyle(None, "(*", "*)")
    assert detect_comment_style("json") is None
    assert detect_comment_style(None) is None


def test_extract_header_comment_empty():
    assert extract_header_comment("", CommentStyle("#")) == HeaderComment(False, 0, "")


def test_extract_header_comment_single_line_block():
    style = CommentStyle("//", "/*", "*/")
    hc = extract_header_comment("/* one */\ncode();\n", style)
    assert hc == HeaderComment(True, 1, "/* one */")


def test_extract_header_comment_skips_leading_blank_lines():
    hc = extract_header_comment("\n\n# a\n# b\n\n# c\n", CommentStyle("#"))
    assert hc == HeaderComment(True, 2, "# a\n# b")


def test_analyze_lua_block_comment():
    style = detect_comment_style("lua")
    stats = analyze_code_stats("--[[\nblock\n]]\n-- single\nlocal x = 1\n", style)
    assert stats == Stats(
        lines_of_code=1,
        comment_lines=4,
        blank_lines=0,
        top_level_declarations=0,
        functions=0,
        imports=0,
    )


def test_analyze_indented_declaration_not_top_level():
    stats = analyze_code_stats("class A:\n    def f(self):\n        pass\n", CommentStyle("#"))
    assert stats.top_level_declarations == 1
    assert stats.functions == 1


def test_extract_shebang():
    assert extract_shebang("#!/bin/sh\necho\n") == "#!/bin/sh"
    assert extract_shebang("echo\n") is None
    assert extract_shebang("") is None