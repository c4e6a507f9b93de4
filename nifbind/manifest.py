# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Line-ownership manifest for staged source.

Staged source is the concatenation of author fragments. A fragment may start
with a marker comment

	// ref <file>:<line>

meaning: the next staged line is line `<line>` of `<file>`. Lines before the
first marker belong to the module's own file, line for line.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from nifbind.core.span import Span

if TYPE_CHECKING:
	from nifbind.module import ModuleDescriptor

_REF_MARKER = re.compile(r"^\s*//\s*ref\s+(?P<file>.+):(?P<line>\d+)\s*$")


@dataclass(frozen=True)
class _Segment:
	staged_start: int  # first staged line owned by the segment (1-based)
	file: str
	line: int  # original line of `staged_start`


@dataclass(frozen=True)
class Manifest:
	file: str
	segments: tuple[_Segment, ...] = ()

	@classmethod
	def build(cls, file: str, raw_source: str) -> "Manifest":
		segments: list[_Segment] = []
		for idx, text in enumerate(raw_source.splitlines(), start=1):
			m = _REF_MARKER.match(text)
			if m is None:
				continue
			segments.append(_Segment(staged_start=idx + 1, file=m.group("file"), line=int(m.group("line"))))
		return cls(file=file, segments=tuple(segments))

	def resolve(self, staged_line: int, column: int | None = None) -> Span:
		"""Map a 1-based staged line back to original coordinates."""
		starts = [s.staged_start for s in self.segments]
		pos = bisect.bisect_right(starts, staged_line) - 1
		if pos < 0:
			return Span(file=self.file, line=staged_line, column=column)
		seg = self.segments[pos]
		return Span(file=seg.file, line=seg.line + (staged_line - seg.staged_start), column=column)


def create(module: "ModuleDescriptor", raw_source: str) -> "ModuleDescriptor":
	return replace(module, manifest=Manifest.build(module.file, raw_source))


def unload(module: "ModuleDescriptor") -> "ModuleDescriptor":
	return replace(module, manifest=None)


__all__ = ["Manifest", "create", "unload"]
