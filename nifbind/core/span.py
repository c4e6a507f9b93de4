# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by build errors.

Spans always point at *original* author coordinates: staged-source positions
are translated through the manifest before a Span is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source location (best-effort file/line/column)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a parser token/tree meta object.

		If `loc` is already a Span, it is returned unchanged.
		"""
		if loc is None:
			return cls(file=file)
		if isinstance(loc, cls):
			return loc
		return cls(
			file=file or getattr(loc, "file", None) or None,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
		)

	def is_known(self) -> bool:
		return self.file is not None or self.line is not None

	def format(self) -> str:
		parts = [self.file or "<unknown>"]
		if self.line is not None:
			parts.append(str(self.line))
			if self.column is not None:
				parts.append(str(self.column))
		return ":".join(parts)

	def to_dict(self) -> dict[str, Any]:
		return {"file": self.file, "line": self.line, "column": self.column}


__all__ = ["Span"]
