# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
NIF declaration normalization.

Authors declare exports as a list mixing bare names, `(name, options)` pairs
and the `...` wildcard. The wildcard turns the whole list into auto mode:
every export sema discovers is included, and the listed entries only layer
options on top.

Duplicate names: the last entry for a name wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from nifbind.core.span import Span
from nifbind.errors import config_error

WILDCARD = "..."


@dataclass(frozen=True)
class Name:
	name: str


@dataclass(frozen=True)
class NameWithOptions:
	name: str
	options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WildcardMarker:
	pass


Declaration = Name | NameWithOptions | WildcardMarker


@dataclass(frozen=True)
class NifDeclaration:
	name: str
	options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Declarations:
	"""Normalized declaration list; `auto` is a property of the whole list."""

	auto: bool = False
	entries: tuple[NifDeclaration, ...] = ()

	@property
	def names(self) -> frozenset[str]:
		return frozenset(e.name for e in self.entries)

	def get(self, name: str) -> NifDeclaration | None:
		for entry in self.entries:
			if entry.name == name:
				return entry
		return None


def parse_declaration(raw: object, *, span: Span | None = None) -> Declaration:
	"""
	Convert one JSON-ish config element into a declaration variant.

	Accepted shapes: "name", "...", {"name": ..., "options": {...}} and
	["name", {...}]. Anything else is a configuration error.
	"""
	if isinstance(raw, (Name, NameWithOptions, WildcardMarker)):
		return raw
	if isinstance(raw, str):
		if raw == WILDCARD:
			return WildcardMarker()
		if not raw:
			raise config_error("nif name must be a non-empty string", span=span)
		return Name(raw)
	if isinstance(raw, dict):
		unknown = sorted(set(raw.keys()) - {"name", "options"})
		if unknown:
			raise config_error(f"nif declaration has unknown fields: {', '.join(unknown)}", span=span)
		name = raw.get("name")
		options = raw.get("options", {})
		return _pair(name, options, span=span)
	if isinstance(raw, (list, tuple)) and len(raw) == 2:
		return _pair(raw[0], raw[1], span=span)
	raise config_error(f"invalid nif declaration {raw!r}", span=span)


def _pair(name: object, options: object, *, span: Span | None) -> NameWithOptions:
	if not isinstance(name, str) or not name or name == WILDCARD:
		raise config_error(f"nif declaration name must be a non-empty string, got {name!r}", span=span)
	if not isinstance(options, dict):
		raise config_error(f"options for nif '{name}' must be an object", span=span)
	return NameWithOptions(name, MappingProxyType(dict(options)))


def normalize_nifs(raw: Declarations | Iterable[object], *, span: Span | None = None) -> Declarations:
	if isinstance(raw, Declarations):
		return raw

	auto = False
	# dict preserves first-insertion position; reassignment keeps last options.
	acc: dict[str, Mapping[str, Any]] = {}
	for item in raw:
		decl = parse_declaration(item, span=span)
		if isinstance(decl, WildcardMarker):
			auto = True
		elif isinstance(decl, NameWithOptions):
			acc[decl.name] = decl.options
		elif isinstance(decl, Name):
			acc[decl.name] = MappingProxyType({})
		else:
			raise AssertionError(f"unhandled declaration {decl!r}")

	entries = tuple(NifDeclaration(name=name, options=options) for name, options in acc.items())
	return Declarations(auto=auto, entries=entries)


__all__ = [
	"WILDCARD",
	"Declaration",
	"Declarations",
	"Name",
	"NameWithOptions",
	"NifDeclaration",
	"WildcardMarker",
	"normalize_nifs",
	"parse_declaration",
]
