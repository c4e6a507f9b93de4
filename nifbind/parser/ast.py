# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Parsed view of a zig source file (top level only)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

DeclKind = Literal["fn", "const", "var"]


@dataclass(frozen=True)
class TopLevelDecl:
	name: str
	kind: DeclKind
	pub: bool = False
	doc_comment: Optional[str] = None
	line: Optional[int] = None


@dataclass(frozen=True)
class ParsedSource:
	"""
	`code` holds top-level declarations in source order; `dependencies` holds
	the raw `@import` paths of zig files (as written, not yet resolved).
	"""

	code: tuple[TopLevelDecl, ...] = ()
	dependencies: tuple[str, ...] = ()


__all__ = ["DeclKind", "ParsedSource", "TopLevelDecl"]
