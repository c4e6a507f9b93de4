# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
nifbind: build pipeline for Zig-backed BEAM NIF modules.

Stages (see `nifbind.compiler`):
  stage source -> manifest -> sema -> parse + dependencies -> verify nifs
  -> nif resources -> documentation -> compile -> render
"""

__all__ = ["compiler", "declarations", "dependencies", "errors", "module"]
