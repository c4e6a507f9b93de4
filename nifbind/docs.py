# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Iterable, Optional

from nifbind.parser import TopLevelDecl

if TYPE_CHECKING:
	from nifbind.module import ModuleDescriptor


def find_doc(name: str, code: Iterable[TopLevelDecl]) -> Optional[str]:
	"""First non-blank doc comment of a top-level declaration called `name`."""
	for decl in code:
		if decl.name != name or decl.doc_comment is None:
			continue
		text = decl.doc_comment.strip()
		if text:
			return text
	return None


def bind_documentation(module: "ModuleDescriptor") -> "ModuleDescriptor":
	code = module.parsed.code if module.parsed is not None else ()
	return replace(module, nifs=tuple(replace(nif, doc=find_doc(nif.name, code)) for nif in module.nifs))


__all__ = ["bind_documentation", "find_doc"]
