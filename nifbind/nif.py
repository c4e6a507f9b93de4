# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
NIF export records and their runtime resource requirements.

A NIF's concurrency mode decides how the host runtime dispatches calls into
it. Every mode except `SYNCHRONOUS` needs a dedicated resource type so the
generated shim can keep per-call state (thread handles, yield frames, dirty
scheduler bookkeeping) alive across the call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ConcurrencyMode(Enum):
	SYNCHRONOUS = "synchronous"
	THREADED = "threaded"
	YIELDING = "yielding"
	DIRTY_CPU = "dirty_cpu"
	DIRTY_IO = "dirty_io"

	@classmethod
	def parse(cls, value: object) -> "ConcurrencyMode":
		if isinstance(value, cls):
			return value
		if isinstance(value, str):
			for mode in cls:
				if mode.value == value:
					return mode
		raise ValueError(f"unknown concurrency mode {value!r}")


@dataclass(frozen=True)
class Signature:
	"""Compiler-reported shape of an exported function (type names as spelled by zig)."""

	params: tuple[str, ...] = ()
	returns: str = "void"

	@property
	def arity(self) -> int:
		return len(self.params)


@dataclass(frozen=True)
class ResourceDescriptor:
	"""A named runtime handle the host must allocate for the module."""

	name: str
	scope: str = "root"


@dataclass(frozen=True)
class ReportedExport:
	"""One exported function as seen by sema."""

	name: str
	signature: Signature = field(default_factory=Signature)
	concurrency: ConcurrencyMode = ConcurrencyMode.SYNCHRONOUS


@dataclass(frozen=True)
class ExportRecord:
	name: str
	concurrency: ConcurrencyMode
	signature: Signature
	options: Mapping[str, Any] = field(default_factory=dict)
	doc: str | None = None
	resources: tuple[ResourceDescriptor, ...] = ()


_RESOURCE_PREFIX: dict[ConcurrencyMode, str] = {
	ConcurrencyMode.THREADED: "ThreadResource",
	ConcurrencyMode.YIELDING: "YieldingResource",
	ConcurrencyMode.DIRTY_CPU: "DirtyResource",
	ConcurrencyMode.DIRTY_IO: "DirtyResource",
}


def nif_resources(nif: ExportRecord) -> tuple[ResourceDescriptor, ...]:
	"""Resources required by `nif`; a pure function of its mode and name."""
	prefix = _RESOURCE_PREFIX.get(nif.concurrency)
	if prefix is None:
		return ()
	return (ResourceDescriptor(name=f"{prefix}_{nif.name}"),)


__all__ = [
	"ConcurrencyMode",
	"ExportRecord",
	"ReportedExport",
	"ResourceDescriptor",
	"Signature",
	"nif_resources",
]
