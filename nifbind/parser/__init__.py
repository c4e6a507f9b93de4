# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Zig source parser front-end.

Wraps the lark grammar in `parser.py` and turns lark errors into structured
`NifbindError`s carrying the offending file/line.
"""

from __future__ import annotations

from typing import Optional

from lark.exceptions import UnexpectedInput

from nifbind.core.span import Span
from nifbind.errors import PARSE, NifbindError

from . import parser as _parser
from .ast import ParsedSource, TopLevelDecl


def parse(source: str, *, file: Optional[str] = None) -> ParsedSource:
	try:
		return _parser.parse_source(source)
	except UnexpectedInput as err:
		message = f"cannot parse zig source: {err.__class__.__name__}"
		raise NifbindError(reason_code=PARSE, message=message, span=Span.from_loc(err, file=file)) from err
	except _parser.LiteralError as err:
		raise NifbindError(reason_code=PARSE, message=str(err), span=Span.from_loc(err, file=file)) from err


__all__ = ["ParsedSource", "TopLevelDecl", "parse"]
