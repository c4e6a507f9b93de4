# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Render dispatch.

Renderers only ever see a `FinishedModule`: a module that has been verified,
resource-augmented and documented. `finish()` is the single place that checks
this, so an unfinished descriptor cannot reach a renderer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Protocol

from nifbind.builder import staged_source_name
from nifbind.module import HostFlavor, ModuleDescriptor
from nifbind.nif import ExportRecord, ResourceDescriptor

AUTOGEN_HEADER = "// this code is autogenerated, do not check it into source control"


@dataclass(frozen=True)
class FinishedModule:
	module: str
	flavor: HostFlavor
	nifs: tuple[ExportRecord, ...]
	resources: tuple[ResourceDescriptor, ...]
	attributes: Mapping[str, Any]
	library_path: str | None
	dependencies: frozenset[str]


def finish(module: ModuleDescriptor) -> FinishedModule:
	if not module.nifs:
		raise ValueError(f"module {module.module} has no verified nifs")
	if module.parsed is None:
		raise ValueError(f"module {module.module} was not parsed")
	declared = set(module.resources)
	for nif in module.nifs:
		if not declared.issuperset(nif.resources):
			raise ValueError(f"nif {nif.name} resources were not aggregated into module {module.module}")
	return FinishedModule(
		module=module.module,
		flavor=module.flavor,
		nifs=module.nifs,
		resources=module.resources,
		attributes=module.attributes,
		library_path=module.library_path,
		dependencies=module.dependencies,
	)


class Renderer(Protocol):
	def render(self, module: FinishedModule, code: str) -> str:
		...


def _load_path(module: FinishedModule) -> str:
	if module.library_path is None:
		return f"lib{module.module}"
	path = Path(module.library_path)
	return (path.parent / path.stem).as_posix()


def _params(nif: ExportRecord, blank: str) -> list[str]:
	return [f"{blank}arg{idx}" for idx in range(nif.signature.arity)]


def _elixir_term(value: Any) -> str:
	if isinstance(value, bool) or value is None:
		return "nil" if value is None else str(value).lower()
	if isinstance(value, (int, float)):
		return repr(value)
	if isinstance(value, str):
		return json.dumps(value)
	if isinstance(value, (list, tuple)):
		return "[" + ", ".join(_elixir_term(v) for v in value) + "]"
	if isinstance(value, dict):
		return "%{" + ", ".join(f"{json.dumps(str(k))} => {_elixir_term(v)}" for k, v in value.items()) + "}"
	raise ValueError(f"cannot render attribute value {value!r}")


def _erlang_term(value: Any) -> str:
	if isinstance(value, bool) or value is None:
		return "undefined" if value is None else str(value).lower()
	if isinstance(value, (int, float)):
		return repr(value)
	if isinstance(value, str):
		return json.dumps(value)
	if isinstance(value, (list, tuple)):
		return "[" + ", ".join(_erlang_term(v) for v in value) + "]"
	if isinstance(value, dict):
		return "#{" + ", ".join(f"{json.dumps(str(k))} => {_erlang_term(v)}" for k, v in value.items()) + "}"
	raise ValueError(f"cannot render attribute value {value!r}")


class ElixirRenderer:
	def render(self, module: FinishedModule, code: str) -> str:
		out: list[str] = [f"defmodule {module.module} do"]
		for key, value in module.attributes.items():
			out.append(f"  @{key} {_elixir_term(value)}")
		for dep in sorted(module.dependencies):
			out.append(f"  @external_resource {json.dumps(dep)}")
		out.append("  @on_load :__load_nifs__")
		out.append("")
		out.append("  def __load_nifs__ do")
		out.append(f"    :erlang.load_nif(~c{json.dumps(_load_path(module))}, 0)")
		out.append("  end")
		for nif in module.nifs:
			out.append("")
			if nif.doc is not None:
				out.append('  @doc """')
				out.extend(f"  {line}".rstrip() for line in nif.doc.splitlines())
				out.append('  """')
			params = ", ".join(_params(nif, "_"))
			out.append(f"  def {nif.name}({params}), do: :erlang.nif_error(:nif_not_loaded)")
		out.append("end")
		return "\n".join(out) + "\n"


class ErlangRenderer:
	def render(self, module: FinishedModule, code: str) -> str:
		exports = ", ".join(f"{nif.name}/{nif.signature.arity}" for nif in module.nifs)
		out: list[str] = [f"-module({module.module}).", f"-export([{exports}]).", "-on_load(init/0)."]
		for key, value in module.attributes.items():
			out.append(f"-{key}({_erlang_term(value)}).")
		out.append("")
		out.append("init() ->")
		out.append(f"    erlang:load_nif({json.dumps(_load_path(module))}, 0).")
		for nif in module.nifs:
			out.append("")
			if nif.doc is not None:
				out.extend(f"%% {line}".rstrip() for line in nif.doc.splitlines())
			params = ", ".join(_params(nif, "_"))
			out.append(f"{nif.name}({params}) ->")
			out.append("    erlang:nif_error(nif_not_loaded).")
		return "\n".join(out) + "\n"


DEFAULT_RENDERERS: Mapping[HostFlavor, Renderer] = {
	HostFlavor.ELIXIR: ElixirRenderer(),
	HostFlavor.ERLANG: ErlangRenderer(),
}


def render(module: ModuleDescriptor, code: str, renderers: Mapping[HostFlavor, Renderer] | None = None) -> str:
	table = renderers if renderers is not None else DEFAULT_RENDERERS
	renderer = table.get(module.flavor)
	if renderer is None:
		raise ValueError(f"no renderer registered for flavor {module.flavor.value}")
	return renderer.render(finish(module), code)


def render_native(module: ModuleDescriptor) -> str:
	"""
	Zig shim compiled into the shared library: imports the staged source and
	lists the NIF table the runtime-binding layer consumes.
	"""
	finished = finish(module)
	out: list[str] = [
		AUTOGEN_HEADER,
		f'const nif_module = @import("{staged_source_name(finished.module)}");',
		"",
		"pub const resources = .{",
	]
	out.extend(f'    .{{ .name = "{res.name}", .scope = .{res.scope} }},' for res in finished.resources)
	out.append("};")
	out.append("")
	out.append("pub const nifs = .{")
	for nif in finished.nifs:
		out.append(
			f'    .{{ .name = "{nif.name}", .arity = {nif.signature.arity}, '
			f".concurrency = .{nif.concurrency.value}, .function = nif_module.{nif.name} }},"
		)
	out.append("};")
	return "\n".join(out) + "\n"


__all__ = [
	"AUTOGEN_HEADER",
	"DEFAULT_RENDERERS",
	"ElixirRenderer",
	"ErlangRenderer",
	"FinishedModule",
	"Renderer",
	"finish",
	"render",
	"render_native",
]
