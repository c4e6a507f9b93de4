# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
JSON build configuration (`nifbind-module`, v0).

	{
	  "format": "nifbind-module",
	  "version": 0,
	  "module": "MyApp.Math",
	  "flavor": "elixir",
	  "code_path": "math.zig",
	  "nifs": ["add", {"name": "mul", "options": {"concurrency": "threaded"}}, "..."],
	  "attributes": {"moduledoc": "math helpers"}
	}

Relative paths are relative to the config file. `file` defaults to the config
file itself; `env` defaults to $NIFBIND_ENV (or "dev").
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from nifbind.core.span import Span
from nifbind.declarations import parse_declaration
from nifbind.errors import config_error, describe_read_error
from nifbind.module import BuildOptions, HostFlavor, default_env

_ALLOWED_TOP = {
	"format",
	"version",
	"module",
	"flavor",
	"file",
	"dir",
	"code",
	"code_path",
	"nifs",
	"attributes",
	"resources",
	"env",
	"x",
}


def _key_line(text: str, key: str) -> int | None:
	m = re.search(r'"' + re.escape(key) + r'"\s*:', text)
	if m is None:
		return None
	return text.count("\n", 0, m.start()) + 1


def _opt_str(data: dict[str, Any], key: str, span: Span) -> str | None:
	value = data.get(key)
	if value is None:
		return None
	if not isinstance(value, str) or not value:
		raise config_error(f"'{key}' must be a non-empty string", span=span)
	return value


def load_build_config(path: Path) -> BuildOptions:
	file_span = Span(file=str(path))
	try:
		text = path.read_text(encoding="utf-8")
	except (OSError, UnicodeDecodeError) as err:
		raise config_error(f"cannot read build config: {describe_read_error(err)}", span=file_span) from err
	try:
		data = json.loads(text)
	except json.JSONDecodeError as err:
		raise config_error(f"invalid JSON: {err.msg}", span=Span(file=str(path), line=err.lineno, column=err.colno)) from err
	if not isinstance(data, dict):
		raise config_error("build config must be a JSON object", span=file_span)
	if data.get("format") != "nifbind-module" or data.get("version") != 0:
		raise config_error("unsupported build config format/version", span=file_span)
	unknown = sorted(set(data.keys()) - _ALLOWED_TOP)
	if unknown:
		raise config_error(f"build config has unknown top-level fields: {', '.join(unknown)}", span=file_span)

	def span_of(key: str) -> Span:
		return Span(file=str(path), line=_key_line(text, key))

	module = _opt_str(data, "module", span_of("module"))
	if module is None:
		raise config_error("build config requires 'module'", span=file_span)
	try:
		flavor = HostFlavor.parse(data.get("flavor", HostFlavor.ELIXIR.value))
	except ValueError as err:
		raise config_error(str(err), span=span_of("flavor"), module=module) from err

	base = path.parent
	file = _opt_str(data, "file", span_of("file"))
	dir_ = _opt_str(data, "dir", span_of("dir"))

	code = data.get("code")
	if code is not None and not isinstance(code, str):
		raise config_error("'code' must be a string", span=span_of("code"), module=module)
	code_path = _opt_str(data, "code_path", span_of("code_path"))

	raw_nifs = data.get("nifs", [])
	if not isinstance(raw_nifs, list):
		raise config_error("'nifs' must be an array", span=span_of("nifs"), module=module)
	for item in raw_nifs:
		parse_declaration(item, span=span_of("nifs"))

	attributes = data.get("attributes", {})
	if not isinstance(attributes, dict):
		raise config_error("'attributes' must be an object", span=span_of("attributes"), module=module)
	resources = data.get("resources", [])
	if not isinstance(resources, list) or not all(isinstance(r, str) and r for r in resources):
		raise config_error("'resources' must be an array of names", span=span_of("resources"), module=module)

	# Both code and code_path are kept so the build reports the conflict
	# at the offending key before staging.
	line = _key_line(text, "code") if code is not None and code_path is not None else _key_line(text, "module")
	return BuildOptions(
		module=module,
		file=str(base / file) if file is not None else str(path),
		flavor=flavor,
		dir=str(base / dir_) if dir_ is not None else None,
		code=code,
		code_path=code_path,
		nifs=tuple(raw_nifs),
		attributes=dict(attributes),
		resources=tuple(resources),
		env=_opt_str(data, "env", span_of("env")) or default_env(),
		line=line,
	)


__all__ = ["load_build_config"]
