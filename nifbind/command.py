# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Thin wrapper over the `zig` executable.

All calls block until zig exits; output is captured and, on failure, error
locations that point into the staged source are remapped through the
module's manifest before being raised.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import sys
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Sequence

from nifbind.core.span import Span
from nifbind.errors import COMPILE, NifbindError, config_error

if TYPE_CHECKING:
	from nifbind.manifest import Manifest
	from nifbind.module import ModuleDescriptor

logger = logging.getLogger(__name__)

NATIVE_SHIM = "module.zig"

_DIAG_LINE = re.compile(r"^(?P<path>.+?):(?P<line>\d+):(?P<col>\d+): (?P<kind>error|note): (?P<msg>.*)$")


class Command(Protocol):
	def fmt(self, path: Path) -> None:
		...

	def compile(self, module: "ModuleDescriptor") -> "ModuleDescriptor":
		...


def find_executable() -> str:
	exe = os.environ.get("NIFBIND_ZIG") or shutil.which("zig")
	if not exe:
		raise config_error("zig executable not found (install zig or set NIFBIND_ZIG)")
	return exe


def library_name(module: str) -> str:
	if sys.platform == "darwin":
		return f"lib{module}.dylib"
	if sys.platform.startswith("win"):
		return f"{module}.dll"
	return f"lib{module}.so"


def remap_compiler_output(output: str, staged_path: str | None, manifest: "Manifest | None") -> tuple[str, Span | None]:
	"""
	Rewrite `<staged>:<line>:<col>: error: ...` lines into original
	coordinates. Returns the rewritten text and the first error's span.
	"""
	staged_name = Path(staged_path).name if staged_path else None
	first: Span | None = None
	lines: list[str] = []
	for raw in output.splitlines():
		m = _DIAG_LINE.match(raw)
		if m is None:
			lines.append(raw)
			continue
		line, col = int(m.group("line")), int(m.group("col"))
		if manifest is not None and staged_name is not None and Path(m.group("path")).name == staged_name:
			span = manifest.resolve(line, col)
		else:
			span = Span(file=m.group("path"), line=line, column=col)
		if first is None and m.group("kind") == "error":
			first = span
		lines.append(f"{span.format()}: {m.group('kind')}: {m.group('msg')}")
	return "\n".join(lines), first


def compiler_error(output: str, module: "ModuleDescriptor", *, what: str = "compile") -> NifbindError:
	text, span = remap_compiler_output(output, module.staged_path, module.manifest)
	lines = [line for line in text.splitlines() if line.strip()]
	message = f"zig {what} failed"
	first_error = next((line for line in lines if ": error: " in line), None)
	if first_error is not None:
		message += f": {first_error.split(': error: ', 1)[1]}"
	return NifbindError(
		reason_code=COMPILE,
		message=message,
		span=span or Span(file=module.file),
		module=module.module,
		notes=tuple(lines),
	)


class ZigCommand:
	def __init__(self, executable: str | None = None, *, optimize: str = "ReleaseSafe", extra_args: Sequence[str] = ()) -> None:
		self.executable = executable or find_executable()
		self.optimize = optimize
		self.extra_args = tuple(extra_args)

	def fmt(self, path: Path) -> None:
		"""Reformat `path` in place; leaves the file untouched if zig cannot parse it."""
		res = subprocess.run([self.executable, "fmt", str(path)], capture_output=True, text=True)
		if res.returncode != 0:
			logger.debug("zig fmt left %s unchanged: %s", path, res.stderr.strip())

	def fmt_source(self, source: str) -> str:
		res = subprocess.run([self.executable, "fmt", "--stdin"], input=source, capture_output=True, text=True)
		if res.returncode != 0:
			return source
		return res.stdout

	def compile(self, module: "ModuleDescriptor") -> "ModuleDescriptor":
		if module.staged_path is None:
			raise AssertionError("compile requires a staged module")
		directory = Path(module.staged_path).parent
		out = directory / library_name(module.module)
		cmd = [
			self.executable,
			"build-lib",
			"-dynamic",
			"-O",
			self.optimize,
			f"-femit-bin={out}",
			*self.extra_args,
			str(directory / NATIVE_SHIM),
		]
		logger.debug("compiling %s: %s", module.module, " ".join(cmd))
		res = subprocess.run(cmd, cwd=directory, capture_output=True, text=True)
		if res.returncode != 0:
			raise compiler_error(res.stderr, module)
		return replace(module, library_path=str(out))


__all__ = [
	"NATIVE_SHIM",
	"Command",
	"ZigCommand",
	"compiler_error",
	"find_executable",
	"library_name",
	"remap_compiler_output",
]
