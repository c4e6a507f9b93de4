# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from nifbind.core.span import Span

# Reason codes. Every pipeline failure carries exactly one of these.
CONFIG = "config"
DEPENDENCY = "dependency"
NIF_MISSING = "nif-missing"
NO_NIFS = "no-nifs"
COMPILE = "compile"
PARSE = "parse"


@dataclass(frozen=True)
class NifbindError(Exception):
	"""
	A structured, serializable build error.

	All errors are fatal to the module build that raised them; `span` always
	refers to original author coordinates (already remapped through the
	manifest when the failure came from the staged source).
	"""

	reason_code: str
	message: str
	span: Span = field(default_factory=Span)
	module: str | None = None
	nif: str | None = None
	notes: tuple[str, ...] = ()

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"span": self.span.to_dict(),
			"module": self.module,
			"nif": self.nif,
			"notes": list(self.notes),
		}

	def format_human(self) -> str:
		parts: list[str] = []
		if self.span.is_known():
			parts.append(f"{self.span.format()}:")
		parts.append(f"[{self.reason_code}]")
		if self.module:
			parts.append(f"(module {self.module})")
		parts.append(self.message)
		text = " ".join(parts)
		for note in self.notes:
			text += f"\n  note: {note}"
		return text


def describe_read_error(err: OSError | UnicodeDecodeError) -> str:
	if isinstance(err, UnicodeDecodeError):
		return f"not valid UTF-8 (byte offset {err.start})"
	return err.strerror or str(err)


def config_error(message: str, *, span: Span | None = None, module: str | None = None) -> NifbindError:
	return NifbindError(reason_code=CONFIG, message=message, span=span or Span(), module=module)


__all__ = [
	"COMPILE",
	"CONFIG",
	"DEPENDENCY",
	"NIF_MISSING",
	"NO_NIFS",
	"PARSE",
	"NifbindError",
	"config_error",
	"describe_read_error",
]
