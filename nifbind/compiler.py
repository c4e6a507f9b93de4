# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Module build pipeline.

One build runs these stages strictly in order, each taking and returning a
whole `ModuleDescriptor`:

	stage source -> manifest -> sema -> parse + dependencies -> verify nifs
	-> nif resources -> documentation -> precompile -> compile
	-> unload manifest -> render (by host flavor)

The first failing stage aborts the build with a `NifbindError`; nothing is
rendered and nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal, Mapping, Optional

from nifbind import manifest
from nifbind.builder import Stager
from nifbind.command import NATIVE_SHIM, Command, ZigCommand
from nifbind.declarations import normalize_nifs
from nifbind.dependencies import resolve
from nifbind.docs import bind_documentation
from nifbind.errors import NifbindError
from nifbind.module import BuildOptions, HostFlavor, ModuleDescriptor, load_source
from nifbind.parser import parse
from nifbind.render import DEFAULT_RENDERERS, Renderer, render, render_native
from nifbind.resources import add_nif_resources
from nifbind.sema import Sema, ZigSema, run_sema
from nifbind.verify import verify

logger = logging.getLogger(__name__)

BuildStatus = Literal["rendered", "aborted"]


@dataclass(frozen=True)
class Toolchain:
	"""External services used by a build; tests swap in fakes."""

	stager: Stager
	sema: Sema
	command: Command
	renderers: Mapping[HostFlavor, Renderer] = field(default_factory=lambda: dict(DEFAULT_RENDERERS))

	@classmethod
	def default(cls, *, zig: str | None = None, staging_root: str | None = None) -> "Toolchain":
		command = ZigCommand(zig)
		return cls(stager=Stager(staging_root), sema=ZigSema(command), command=command)


@dataclass(frozen=True)
class CompiledModule:
	module: ModuleDescriptor
	rendered: str


@dataclass(frozen=True)
class BuildOutcome:
	status: BuildStatus
	module: Optional[ModuleDescriptor] = None
	rendered: Optional[str] = None
	error: Optional[NifbindError] = None

	@property
	def ok(self) -> bool:
		return self.status == "rendered"


def apply_parser(module: ModuleDescriptor, code: str) -> ModuleDescriptor:
	try:
		parsed = parse(code, file=module.file)
	except NifbindError as err:
		if module.manifest is None or err.span.line is None:
			raise
		raise replace(err, span=module.manifest.resolve(err.span.line, err.span.column)) from err
	dependencies = resolve(parsed, module.options.source_path)
	return replace(module, parsed=parsed, dependencies=dependencies)


def precompile(module: ModuleDescriptor, command: Command) -> None:
	if module.staged_path is None:
		raise AssertionError("precompile requires a staged module")
	path = Path(module.staged_path).parent / NATIVE_SHIM
	path.write_text(render_native(module), encoding="utf-8")
	command.fmt(path)
	logger.debug("wrote module code to %s", path)


def compile(code: str, opts: BuildOptions, toolchain: Toolchain | None = None) -> CompiledModule:
	tc = toolchain if toolchain is not None else Toolchain.default()
	module = ModuleDescriptor.from_options(opts, normalize_nifs(opts.nifs, span=opts.span))

	module = tc.stager.stage(module, code)
	module = manifest.create(module, code)
	module = run_sema(module, tc.sema)
	module = apply_parser(module, code)
	module = verify(module)
	module = add_nif_resources(module)
	module = bind_documentation(module)
	precompile(module, tc.command)
	try:
		module = tc.command.compile(module)
	finally:
		module = manifest.unload(module)

	rendered = render(module, code, tc.renderers)
	logger.debug("rendered %s (%s)", module.module, module.flavor.value)
	return CompiledModule(module=module, rendered=rendered)


def build(opts: BuildOptions, toolchain: Toolchain | None = None) -> BuildOutcome:
	"""
	Run one complete build. Configuration problems are reported before any
	staging happens; every failure yields an `aborted` outcome.
	"""
	try:
		code = load_source(opts)
		compiled = compile(code, opts, toolchain)
	except NifbindError as err:
		logger.debug("build of %s aborted: %s", opts.module, err.reason_code)
		return BuildOutcome(status="aborted", error=err)
	return BuildOutcome(status="rendered", module=compiled.module, rendered=compiled.rendered)


__all__ = [
	"BuildOutcome",
	"CompiledModule",
	"Toolchain",
	"apply_parser",
	"build",
	"compile",
	"precompile",
]
