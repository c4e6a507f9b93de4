# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Cross-check declared NIFs against what sema reported.

Explicit mode: exactly the declared names, each of which must exist.
Auto mode: every reported export, with declared options layered on top.
Either way an empty result is an error of its own (`no-nifs`).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from nifbind.core.span import Span
from nifbind.declarations import Declarations
from nifbind.errors import CONFIG, NIF_MISSING, NO_NIFS, NifbindError
from nifbind.nif import ConcurrencyMode, ExportRecord, ReportedExport

if TYPE_CHECKING:
	from nifbind.module import ModuleDescriptor

logger = logging.getLogger(__name__)

CONCURRENCY_OPTION = "concurrency"


def _record(reported: ReportedExport, options: Mapping[str, Any], *, span: Span) -> ExportRecord:
	concurrency = reported.concurrency
	if CONCURRENCY_OPTION in options:
		try:
			concurrency = ConcurrencyMode.parse(options[CONCURRENCY_OPTION])
		except ValueError as err:
			raise NifbindError(reason_code=CONFIG, message=f"nif '{reported.name}': {err}", span=span, nif=reported.name) from err
	return ExportRecord(
		name=reported.name,
		concurrency=concurrency,
		signature=reported.signature,
		options=MappingProxyType(dict(options)),
	)


def verify_nifs(
	declared: Declarations,
	reported: Iterable[ReportedExport],
	*,
	file: str | None = None,
	module: str | None = None,
) -> tuple[ExportRecord, ...]:
	span = Span(file=file)
	by_name: dict[str, ReportedExport] = {}
	for export in reported:
		by_name.setdefault(export.name, export)

	records: list[ExportRecord] = []
	if declared.auto:
		for name, export in by_name.items():
			entry = declared.get(name)
			records.append(_record(export, entry.options if entry is not None else {}, span=span))
		missing = sorted(declared.names - by_name.keys())
		if missing:
			# Overrides for functions sema never saw are still a mismatch.
			raise NifbindError(
				reason_code=NIF_MISSING,
				message=f"nif '{missing[0]}' not found in zig source",
				span=span,
				module=module,
				nif=missing[0],
			)
	else:
		for entry in declared.entries:
			export = by_name.get(entry.name)
			if export is None:
				raise NifbindError(
					reason_code=NIF_MISSING,
					message=f"nif '{entry.name}' not found in zig source",
					span=span,
					module=module,
					nif=entry.name,
					notes=(f"public functions found: {', '.join(sorted(by_name)) or '(none)'}",),
				)
			records.append(_record(export, entry.options, span=span))

	if not records:
		raise NifbindError(reason_code=NO_NIFS, message="no nifs found in module.", span=span, module=module)
	return tuple(records)


def verify(module: "ModuleDescriptor") -> "ModuleDescriptor":
	if module.reported is None:
		raise AssertionError("verify requires sema results")
	nifs = verify_nifs(module.declared, module.reported, file=module.file, module=module.module)
	logger.debug("verified nifs for %s: %s", module.module, ", ".join(n.name for n in nifs))
	return replace(module, nifs=nifs)


__all__ = ["CONCURRENCY_OPTION", "verify", "verify_nifs"]
