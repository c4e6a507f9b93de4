# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Transitive zig file dependencies of a module.

The result feeds the host's external-resource tracking: a change to any
listed file must trigger a rebuild. Traversal uses an explicit worklist and a
visited set, so cyclic `@import` graphs terminate and each file is read once.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from nifbind.core.span import Span
from nifbind.errors import DEPENDENCY, NifbindError, describe_read_error
from nifbind.parser import ParsedSource, parse

logger = logging.getLogger(__name__)

Reader = Callable[[str], str]


def _read_text(path: str) -> str:
	return Path(path).read_text(encoding="utf-8")


def normalize_dep_path(dep: str, referrer: str, *, cwd: str | None = None) -> str:
	"""
	Resolve `dep` against the directory of `referrer`, normalise it, and make
	it relative to `cwd` when it lives underneath (POSIX separators).
	"""
	base = cwd or os.getcwd()
	referrer_dir = os.path.dirname(referrer) or "."
	full = os.path.normpath(os.path.join(base, referrer_dir, dep))
	rel = os.path.relpath(full, base)
	if Path(rel).parts[:1] == ("..",):
		return Path(full).as_posix()
	return Path(rel).as_posix()


def resolve(
	initial_source: str | ParsedSource,
	initial_path: str,
	*,
	reader: Reader = _read_text,
	cwd: str | None = None,
) -> frozenset[str]:
	"""
	Return the set of zig files reachable through `@import` from the module
	at `initial_path` (whose content is `initial_source`).

	An unreadable dependency aborts the build with a `dependency` error.
	"""
	root = initial_source if isinstance(initial_source, ParsedSource) else parse(initial_source, file=initial_path)
	visited: set[str] = set()
	worklist: list[tuple[str, ParsedSource]] = [(initial_path, root)]

	while worklist:
		path, parsed = worklist.pop()
		for dep in parsed.dependencies:
			dep_path = normalize_dep_path(dep, path, cwd=cwd)
			if dep_path in visited:
				continue
			visited.add(dep_path)
			try:
				text = reader(dep_path if os.path.isabs(dep_path) else os.path.join(cwd or os.getcwd(), dep_path))
			except (OSError, UnicodeDecodeError) as err:
				raise NifbindError(
					reason_code=DEPENDENCY,
					message=f"cannot read dependency '{dep_path}' (imported as \"{dep}\"): {describe_read_error(err)}",
					span=Span(file=path),
				) from err
			logger.debug("dependency %s (from %s)", dep_path, path)
			worklist.append((dep_path, parse(text, file=dep_path)))

	return frozenset(visited)


__all__ = ["normalize_dep_path", "resolve"]
