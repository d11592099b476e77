# codescout

Read-only tools for exploring a source tree. Every tool is confined to a
project root, and paths that escape it are rejected, whether they escape by
`../` or through a symlink. None of the tools changes files on disk.

## Tools

`codescout.registry.ToolRegistry` registers these tools by name:

| Name             | Module                      | What it does                                                    |
|------------------|-----------------------------|-----------------------------------------------------------------|
| `search_files`   | `codescout.search_files`    | Find files whose relative path or file name matches a glob      |
| `search_content` | `codescout.search_content`  | Search file contents line by line with a regular expression     |
| `read_file`      | `codescout.read_file`       | Read a file, or only some line ranges (`"1-50,80"`)             |
| `list_dir`       | `codescout.list_dir`        | List a directory: directories first, hidden entries after       |
| `file_info`      | `codescout.file_info`       | Type, size, line count and, for code, statistics and header     |

### Parameters

- `search_files`: `pattern` (required), `path` (default `"."`),
  `exclude_test_files` (default `true`). It returns at most 100 files, sorted.
- `search_content`: `pattern` (a regex, required), `file_pattern` (a glob
  matched against file names), `exclude_paths` (globs matched against
  relative paths), `exclude_test_files` (default `true`), `context_lines`
  (capped at 5). It returns at most 100 matches. Files larger than 1 MiB and
  binary files are skipped.
- `read_file`: `file` (required) and optional `lines`. `lines` is either a
  string such as `"1-5,8"` or `{"ranges": [[1, 5], [8, 8]]}`. Overlapping and
  adjacent ranges are merged. The output is capped at 2000 lines and 50 KiB.
  A file over 10 MiB is not read unless you give line ranges.
- `list_dir`: `path` (default `"."`). It returns at most 500 entries.
- `file_info`: `file` (required).

Globs follow these rules:

- `*` and `?` also match `/`.
- `**` must be a whole path component.
- `[...]` and `[!...]` are character sets.

While walking, these directories are skipped: `.git`, `.svn`, `.hg`,
`node_modules`, `target`, `build`, `dist`, `.idea`, `.vscode`, `__pycache__`,
`.tox` and `vendor`. Test files are left out of both searches unless
`exclude_test_files` is `false`. These include paths under `test/`, `tests/`
or `spec/`, and names such as `test_x.py`, `x_test.go` and `FooTest.java`.

## Usage

```python
from codescout.registry import ToolRegistry
from codescout.base import ToolError

registry = ToolRegistry("/path/to/project")
print(sorted(registry.list_tools()))

found = registry.execute("search_content", {"pattern": r"fn main"})
first = found.data["matches"][0]

snippet = registry.execute(
    "read_file",
    {"file": first["file"], "lines": f"1-{first['line'] + 10}"},
)
print(snippet.data["content"])

try:
    registry.execute("read_file", {"file": "../../etc/passwd"})
except ToolError as err:
    print(err.code.value)   # "PATH_OUTSIDE_ROOT"
```

Every successful call returns a `codescout.base.ToolOutput`:

- `data` is a plain, JSON-serialisable dict.
- `truncated` tells you when a result was cut to the tool's limits.
- `to_dict()` gives the whole output as a dict.

Every failure raises `codescout.base.ToolError`. Its `code` is an `ErrorCode`
with a stable string value, and `ErrorCode.from_str` turns that string back
into the code.

You can add your own tool with `ToolRegistry.register`. A tool is a subclass
of `codescout.base.Tool` with a `name`, a `description` and an
`execute(params)` method.

## Checking shell commands

`codescout.shell_security` decides whether a shell command is read-only and
stays inside the project:

- Only whitelisted programs are allowed, such as `grep`, `find`, `cat`,
  `wc`, `sed` and `awk`.
- It rejects `sed -i`, `tee`, `>>`, and redirects that write into the
  workspace.
- It rejects `../` path traversal, background `&`, and `system(`/`exec(`.
- It checks each `;`, `&&` and `||` segment separately, and each stage of a
  pipeline.

```python
from pathlib import Path
from codescout.shell_security import validate_command, ShellSecurityError

try:
    validate_command("ls > out.txt", Path("/path/to/project"))
except ShellSecurityError as err:
    print(err.code.value, err.message)   # SHELL_DANGEROUS_OPERATOR ...
```

`codescout.shell_parsing` holds the helpers these checks use:

- quote-aware splitting: `split_commands` and `split_pipe_segments`
- redirect checks: `is_redirect_safe` and `is_redirect_token`
- `inject_exclude_paths`, which adds exclusion options to `grep` and `find`
  commands

## What it does not do

The package never runs shell commands. It only validates them and rewrites
their text, and running an accepted command is left to you. For the same
reason the registry has no shell tool. There is no command-line program,
server or language-model agent. The package is a library of tools to call
from Python.

## Running the tests

```
pip install -e .[test]
pytest
```