# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source formatter pass-through.

Generated files are returned untouched; anything else goes through
`zig fmt`, which leaves source it cannot parse unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

AUTOGEN_PREFIX = "// this code is autogenerated"
EXTENSIONS = (".zig",)


class SourceFormatter(Protocol):
	def fmt_source(self, source: str) -> str:
		...


def format_source(contents: str, command: SourceFormatter) -> str:
	if contents.startswith(AUTOGEN_PREFIX):
		return contents
	return command.fmt_source(contents)


def format_file(path: Path, command: SourceFormatter) -> bool:
	"""Format `path` in place. Returns True if the file changed."""
	if path.suffix not in EXTENSIONS:
		return False
	before = path.read_text(encoding="utf-8")
	after = format_source(before, command)
	if after == before:
		return False
	path.write_text(after, encoding="utf-8")
	return True


__all__ = ["AUTOGEN_PREFIX", "EXTENSIONS", "SourceFormatter", "format_file", "format_source"]
