"""Sandboxed read-only tools for exploring a project's source tree, plus shell command validation."""

__version__ = "0.1.0"