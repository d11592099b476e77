[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "codescout"
version = "0.1.0"
description = "Sandboxed, read-only code exploration tools: file search, content search, file reading, directory listing, file statistics and shell command validation"
requires-python = ">=3.10"
dependencies = []
keywords = ["code exploration", "search", "grep", "glob", "sandbox", "agent tools"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["codescout"]

[tool.pytest.ini_options]
addopts = "-ra"
