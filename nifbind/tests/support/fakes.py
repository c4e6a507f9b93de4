# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Fake toolchain services for pipeline tests.

No zig is needed: sema reports a fixed list, the command records calls and
"compiles" by writing an empty library file (or fails with canned output).
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Iterable, Sequence

from nifbind.builder import Stager
from nifbind.command import compiler_error, library_name
from nifbind.compiler import Toolchain
from nifbind.module import BuildOptions, HostFlavor, ModuleDescriptor
from nifbind.nif import ConcurrencyMode, ReportedExport, Signature


def export(name: str, arity: int = 0, concurrency: ConcurrencyMode = ConcurrencyMode.SYNCHRONOUS) -> ReportedExport:
	return ReportedExport(
		name=name,
		signature=Signature(params=tuple("i64" for _ in range(arity)), returns="i64"),
		concurrency=concurrency,
	)


class FakeSema:
	def __init__(self, reported: Iterable[ReportedExport]) -> None:
		self.reported = list(reported)
		self.calls: list[str] = []

	def run(self, module: ModuleDescriptor) -> list[ReportedExport]:
		self.calls.append(module.module)
		assert module.staged_path is not None and Path(module.staged_path).exists()
		return list(self.reported)


class FakeCommand:
	def __init__(self, failure_output: str | None = None) -> None:
		self.failure_output = failure_output
		self.formatted: list[Path] = []
		self.compiled: list[ModuleDescriptor] = []

	def fmt(self, path: Path) -> None:
		self.formatted.append(path)

	def fmt_source(self, source: str) -> str:
		return source.replace("  ", "    ")

	def compile(self, module: ModuleDescriptor) -> ModuleDescriptor:
		self.compiled.append(module)
		if self.failure_output is not None:
			raise compiler_error(self.failure_output, module)
		assert module.staged_path is not None
		out = Path(module.staged_path).parent / library_name(module.module)
		out.write_bytes(b"")
		return replace(module, library_path=str(out))


def make_toolchain(
	tmp_path: Path,
	reported: Sequence[ReportedExport] = (),
	*,
	failure_output: str | None = None,
) -> tuple[Toolchain, FakeSema, FakeCommand]:
	sema = FakeSema(reported)
	command = FakeCommand(failure_output)
	return Toolchain(stager=Stager(str(tmp_path / "staging")), sema=sema, command=command), sema, command


def make_options(
	tmp_path: Path,
	*,
	code: str | None = None,
	code_path: str | None = None,
	nifs: Sequence[object] = (),
	module: str = "NifTest",
	flavor: HostFlavor = HostFlavor.ELIXIR,
	attributes: dict | None = None,
	resources: Sequence[str] = (),
) -> BuildOptions:
	return BuildOptions(
		module=module,
		file=str(tmp_path / "nif_test.ex"),
		flavor=flavor,
		code=code,
		code_path=code_path,
		nifs=tuple(nifs),
		attributes=attributes or {},
		resources=tuple(resources),
		env="test",
		line=3,
	)
