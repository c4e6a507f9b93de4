# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Semantic analysis of staged source.

Sema compiles a throwaway reflection harness against the staged module and
reports the public functions it exports together with their signatures. It
never decides *which* functions become NIFs; that is `nifbind.verify`.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from nifbind.command import ZigCommand, compiler_error
from nifbind.core.span import Span
from nifbind.errors import COMPILE, NifbindError
from nifbind.nif import ConcurrencyMode, ReportedExport, Signature

if TYPE_CHECKING:
	from nifbind.module import ModuleDescriptor

logger = logging.getLogger(__name__)

SEMA_HARNESS = "sema.zig"

_HARNESS_TEMPLATE = """\
// this code is autogenerated, do not check it into source control
const std = @import("std");
const nif = @import("{staged}");

fn typeName(comptime T: ?type) []const u8 {{
    return if (T) |t| @typeName(t) else "anytype";
}}

pub fn main() !void {{
    const out = std.io.getStdOut().writer();
    try out.writeAll("{{\\"functions\\":[");
    var first = true;
    inline for (@typeInfo(nif).Struct.decls) |decl| {{
        const T = @TypeOf(@field(nif, decl.name));
        if (@typeInfo(T) == .Fn) {{
            if (!first) try out.writeAll(",");
            first = false;
            try out.print("{{{{\\"name\\":\\"{{s}}\\",\\"params\\":[", .{{decl.name}});
            inline for (@typeInfo(T).Fn.params, 0..) |param, index| {{
                if (index != 0) try out.writeAll(",");
                try out.print("\\"{{s}}\\"", .{{typeName(param.type)}});
            }}
            try out.print("],\\"returns\\":\\"{{s}}\\"}}}}", .{{typeName(@typeInfo(T).Fn.return_type)}});
        }}
    }}
    try out.writeAll("]}}\\n");
}}
"""


class Sema(Protocol):
	def run(self, module: "ModuleDescriptor") -> list[ReportedExport]:
		"""Return every public function exported by the staged source."""
		...


def parse_sema_json(text: str, *, file: str | None = None) -> list[ReportedExport]:
	"""
	Decode the harness output:

		{"functions": [{"name": ..., "params": [...], "returns": ...,
		                "concurrency": "synchronous"?}, ...]}
	"""
	try:
		data: Any = json.loads(text)
	except json.JSONDecodeError as err:
		raise NifbindError(reason_code=COMPILE, message=f"sema produced invalid JSON: {err.msg}", span=Span(file=file)) from err
	functions = data.get("functions") if isinstance(data, dict) else None
	if not isinstance(functions, list):
		raise NifbindError(reason_code=COMPILE, message="sema output missing 'functions' array", span=Span(file=file))
	out: list[ReportedExport] = []
	for entry in functions:
		if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
			raise NifbindError(reason_code=COMPILE, message=f"malformed sema entry {entry!r}", span=Span(file=file))
		params = entry.get("params") or []
		try:
			concurrency = ConcurrencyMode.parse(entry.get("concurrency", ConcurrencyMode.SYNCHRONOUS.value))
		except ValueError as err:
			raise NifbindError(reason_code=COMPILE, message=f"sema: {err}", span=Span(file=file)) from err
		out.append(
			ReportedExport(
				name=entry["name"],
				signature=Signature(params=tuple(str(p) for p in params), returns=str(entry.get("returns", "void"))),
				concurrency=concurrency,
			)
		)
	return out


class ZigSema:
	"""Default sema: builds and runs the reflection harness with `zig run`."""

	def __init__(self, command: ZigCommand) -> None:
		self.command = command

	def run(self, module: "ModuleDescriptor") -> list[ReportedExport]:
		if module.staged_path is None:
			raise AssertionError("sema requires a staged module")
		staged = Path(module.staged_path)
		harness = staged.parent / SEMA_HARNESS
		harness.write_text(_HARNESS_TEMPLATE.format(staged=staged.name), encoding="utf-8")
		res = subprocess.run(
			[self.command.executable, "run", str(harness)],
			cwd=staged.parent,
			capture_output=True,
			text=True,
		)
		if res.returncode != 0:
			raise compiler_error(res.stderr, module, what="sema")
		logger.debug("sema for %s: %s", module.module, res.stdout.strip())
		return parse_sema_json(res.stdout, file=module.file)


def run_sema(module: "ModuleDescriptor", sema: Sema) -> "ModuleDescriptor":
	return replace(module, reported=tuple(sema.run(module)))


__all__ = ["SEMA_HARNESS", "Sema", "ZigSema", "parse_sema_json", "run_sema"]
