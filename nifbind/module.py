# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Module descriptor threaded through the build pipeline.

The descriptor is immutable: each stage returns a new value built with
`dataclasses.replace`, so a stage never observes another stage's half-written
state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from nifbind.core.span import Span
from nifbind.declarations import Declarations
from nifbind.errors import config_error, describe_read_error
from nifbind.nif import ExportRecord, ReportedExport, ResourceDescriptor

if TYPE_CHECKING:
	from nifbind.manifest import Manifest
	from nifbind.parser import ParsedSource

DEFAULT_ENV = "dev"


class HostFlavor(Enum):
	ELIXIR = "elixir"
	ERLANG = "erlang"

	@classmethod
	def parse(cls, value: object) -> "HostFlavor":
		if isinstance(value, cls):
			return value
		for flavor in cls:
			if flavor.value == value:
				return flavor
		raise ValueError(f"unknown host flavor {value!r} (expected one of: elixir, erlang)")


def default_env() -> str:
	return os.environ.get("NIFBIND_ENV") or DEFAULT_ENV


@dataclass(frozen=True)
class BuildOptions:
	"""Author-facing configuration for one module build."""

	module: str
	file: str
	flavor: HostFlavor = HostFlavor.ELIXIR
	dir: str | None = None
	code: str | None = None
	code_path: str | None = None
	nifs: tuple[object, ...] | Declarations = ()
	attributes: Mapping[str, Any] = field(default_factory=dict)
	resources: tuple[str, ...] = ()
	env: str = field(default_factory=default_env)
	# Line of the declaration that configured this module (error locations).
	line: int | None = None

	@property
	def span(self) -> Span:
		return Span(file=self.file, line=self.line)

	@property
	def code_dir(self) -> str:
		return self.dir or str(Path(self.file).parent)

	@property
	def source_path(self) -> str:
		"""Path that relative `@import`s in the module source resolve against."""
		if self.code_path is not None:
			return str(Path(self.file).parent / self.code_path)
		return str(Path(self.code_dir) / Path(self.file).name)


@dataclass(frozen=True)
class ModuleDescriptor:
	module: str
	file: str
	flavor: HostFlavor
	options: BuildOptions
	declared: Declarations = field(default_factory=Declarations)
	staged_path: str | None = None
	manifest: "Manifest | None" = None
	parsed: "ParsedSource | None" = None
	# Exports as reported by sema; None until the sema stage ran.
	reported: tuple[ReportedExport, ...] | None = None
	dependencies: frozenset[str] = frozenset()
	nifs: tuple[ExportRecord, ...] = ()
	resources: tuple[ResourceDescriptor, ...] = ()
	library_path: str | None = None

	@classmethod
	def from_options(cls, opts: BuildOptions, declared: Declarations) -> "ModuleDescriptor":
		return cls(
			module=opts.module,
			file=opts.file,
			flavor=opts.flavor,
			options=opts,
			declared=declared,
			resources=tuple(ResourceDescriptor(name=r) for r in opts.resources),
		)

	@property
	def env(self) -> str:
		return self.options.env

	@property
	def attributes(self) -> Mapping[str, Any]:
		return self.options.attributes


def load_source(opts: BuildOptions) -> str:
	"""
	Return the raw source for `opts`: either the literal embedded code or the
	contents of the external file (relative to the originating file).
	"""
	if opts.code is not None and opts.code_path is not None:
		raise config_error(
			"you may not supply literal code when `code_path` is specified",
			span=opts.span,
			module=opts.module,
		)
	if opts.code_path is not None:
		path = Path(opts.file).parent / opts.code_path
		try:
			return path.read_text(encoding="utf-8")
		except (OSError, UnicodeDecodeError) as err:
			raise config_error(f"cannot read code_path '{path}': {describe_read_error(err)}", span=opts.span, module=opts.module) from err
	if opts.code is None:
		raise config_error("no zig code supplied (set `code` or `code_path`)", span=opts.span, module=opts.module)
	return opts.code


__all__ = ["BuildOptions", "HostFlavor", "ModuleDescriptor", "default_env", "load_source"]
