# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Staging directories for module builds.

Every build gets `<root>/.nifbind_compiler/<env>/<module>`, so concurrent
builds of distinct modules never share files. The staged primary source is
written there as `.<module>.zig`; zig resolves relative `@import`s against
the importing file, so the zig sources next to the module source are mirrored
alongside it.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from nifbind.module import ModuleDescriptor

logger = logging.getLogger(__name__)

STAGING_DIRNAME = ".nifbind_compiler"


def staging_root() -> str:
	return os.environ.get("NIFBIND_STAGING_ROOT") or tempfile.gettempdir()


def assembly_dir(env: str, module: str, *, root: str | None = None) -> str:
	base = (root or staging_root()).replace("\\", "/")
	return f"{base.rstrip('/')}/{STAGING_DIRNAME}/{env}/{module}"


def staged_source_name(module: str) -> str:
	return f".{module}.zig"


def _mirror_sources(code_dir: Path, dest: Path) -> None:
	if not code_dir.is_dir():
		return
	for src in code_dir.rglob("*.zig"):
		rel = src.relative_to(code_dir)
		if any(part.startswith(".") for part in rel.parts):
			continue
		target = dest / rel
		target.parent.mkdir(parents=True, exist_ok=True)
		shutil.copyfile(src, target)


class Stager:
	def __init__(self, root: str | None = None) -> None:
		self.root = root

	def staging_directory(self, env: str, module: str) -> Path:
		return Path(assembly_dir(env, module, root=self.root))

	def stage(self, module: "ModuleDescriptor", code: str) -> "ModuleDescriptor":
		directory = self.staging_directory(module.env, module.module)
		directory.mkdir(parents=True, exist_ok=True)
		_mirror_sources(Path(module.options.source_path).parent, directory)
		staged = directory / staged_source_name(module.module)
		staged.write_text(code, encoding="utf-8")
		logger.debug("staged %s at %s", module.module, staged)
		return replace(module, staged_path=str(staged))


__all__ = ["STAGING_DIRNAME", "Stager", "assembly_dir", "staged_source_name", "staging_root"]
