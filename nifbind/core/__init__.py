# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from nifbind.core.span import Span

__all__ = ["Span"]
