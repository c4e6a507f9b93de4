# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Runtime resources required by non-synchronous NIFs.

Threaded, yielding and dirty-scheduled NIFs each need their own resource
type; those are appended to the module's resource list after any resources
the author declared. Duplicates are kept: each NIF's requirement stands on
its own.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from nifbind.nif import nif_resources

if TYPE_CHECKING:
	from nifbind.module import ModuleDescriptor


def add_nif_resources(module: "ModuleDescriptor") -> "ModuleDescriptor":
	nifs = tuple(replace(nif, resources=nif_resources(nif)) for nif in module.nifs)
	added = tuple(res for nif in nifs for res in nif.resources)
	return replace(module, nifs=nifs, resources=module.resources + added)


__all__ = ["add_nif_resources"]
