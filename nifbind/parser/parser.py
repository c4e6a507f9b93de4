# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import re
import string
from pathlib import Path
from typing import Iterable, List, Optional

from lark import Lark, Token, Tree

from .ast import DeclKind, ParsedSource, TopLevelDecl

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)

_DECL_KEYWORDS: dict[str, DeclKind] = {"fn": "fn", "const": "const", "var": "var"}
_IMPORT_PATH = re.compile(r'"((?:\\.|[^"\\])*)"')
_UNICODE_ESCAPE = re.compile(r"\\u\{([0-9A-Fa-f]{1,6})\}")
_SIMPLE_ESCAPES = {"n": b"\n", "r": b"\r", "t": b"\t", "\\": b"\\", "'": b"'", '"': b'"'}


class LiteralError(ValueError):
	"""A string literal or quoted identifier with an invalid escape sequence."""

	def __init__(self, message: str, tok: Token) -> None:
		super().__init__(message)
		self.line = tok.line
		self.column = tok.column


def _decode_string(raw: str) -> str:
	"""
	Decode the inside of a zig string literal.

	`\\xNN` escapes are raw bytes, so the result is decoded as UTF-8 once all
	escapes are applied. Raises ValueError on malformed escapes or bytes.
	"""
	if "\\" not in raw:
		return raw
	out = bytearray()
	idx = 0
	while idx < len(raw):
		ch = raw[idx]
		if ch != "\\":
			out += ch.encode("utf-8")
			idx += 1
			continue
		esc = raw[idx + 1 : idx + 2]
		if esc in _SIMPLE_ESCAPES:
			out += _SIMPLE_ESCAPES[esc]
			idx += 2
		elif esc == "x":
			digits = raw[idx + 2 : idx + 4]
			if len(digits) != 2 or not all(c in string.hexdigits for c in digits):
				raise ValueError(f"invalid \\x escape at offset {idx}")
			out.append(int(digits, 16))
			idx += 4
		elif esc == "u":
			m = _UNICODE_ESCAPE.match(raw, idx)
			if m is None:
				raise ValueError(f"invalid \\u escape at offset {idx}")
			out += chr(int(m.group(1), 16)).encode("utf-8")
			idx = m.end()
		else:
			raise ValueError(f"invalid escape sequence '\\{esc}' at offset {idx}")
	return out.decode("utf-8")


def _decode_token(tok: Token, raw: str) -> str:
	try:
		return _decode_string(raw)
	except ValueError as err:
		raise LiteralError(f"bad string literal {tok.value}: {err}", tok) from err


def _import_target(tok: Token) -> str:
	match = _IMPORT_PATH.search(tok.value)
	if match is None:
		raise LiteralError(f"malformed @import token {tok.value!r}", tok)
	return _decode_token(tok, match.group(1))


def _token_name(tok: Token) -> str:
	if tok.type == "QUOTED_NAME":
		return _decode_token(tok, tok.value[2:-1])
	return tok.value


def _doc_text(tok: Token) -> str:
	text = tok.value[3:]
	return text[1:] if text.startswith(" ") else text


class _StatementScanner:
	"""
	Walks top-level children and recognises `[pub] fn|const|var NAME` heads.

	A top-level statement ends at `;` or at a brace group (a fn body, a
	`test`/`comptime` block). Container initialisers (`const S = struct {..};`)
	keep the statement open until the trailing `;`.
	"""

	def __init__(self) -> None:
		self.decls: List[TopLevelDecl] = []
		self._reset()

	def _reset(self) -> None:
		self.docs: List[str] = []
		self.words: List[str] = []
		self.started = False
		self.decl_kind: Optional[DeclKind] = None

	def feed(self, children: Iterable[object]) -> List[TopLevelDecl]:
		for child in children:
			if isinstance(child, Tree):
				if self.decl_kind in (None, "fn"):
					self._reset()
				continue
			if not isinstance(child, Token):
				continue
			if child.type == "DOC_COMMENT":
				if not self.started:
					self.docs.append(_doc_text(child))
				continue
			if child.type == "SEMI":
				self._reset()
				continue
			self.started = True
			if child.type in ("NAME", "QUOTED_NAME"):
				self._on_name(child)
		return self.decls

	def _on_name(self, tok: Token) -> None:
		name = _token_name(tok)
		if self.decl_kind is None and self.words and self.words[-1] in _DECL_KEYWORDS:
			kind = _DECL_KEYWORDS[self.words[-1]]
			self.decl_kind = kind
			self.decls.append(
				TopLevelDecl(
					name=name,
					kind=kind,
					pub="pub" in self.words,
					doc_comment="\n".join(self.docs) if self.docs else None,
					line=tok.line,
				)
			)
		self.words.append(name)


def parse_tree(source: str) -> Tree:
	return _PARSER.parse(source)


def parse_source(source: str) -> ParsedSource:
	"""
	Parse zig `source` into top-level declarations and file dependencies.

	Raises `lark.UnexpectedInput` on unbalanced braces or unterminated
	literals and `LiteralError` on bad escapes; callers attach file context.
	"""
	tree = parse_tree(source)
	decls = _StatementScanner().feed(tree.children)

	deps: list[str] = []
	seen: set[str] = set()
	for tok in tree.scan_values(lambda v: isinstance(v, Token) and v.type == "IMPORT_CALL"):
		target = _import_target(tok)
		if not target.endswith(".zig") or target in seen:
			continue
		seen.add(target)
		deps.append(target)
	return ParsedSource(code=tuple(decls), dependencies=tuple(deps))


__all__ = ["LiteralError", "parse_source", "parse_tree"]
