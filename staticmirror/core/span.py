# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span representation used by diagnostics and source edits.

A Span carries best-effort file/line/column info plus, when the producer knows
them, absolute character offsets into the module text. Lines and columns are
1-based; offsets are 0-based and address characters (not UTF-8 bytes).
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (file/line/column plus optional offsets)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None
	start: Optional[int] = None
	end: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any) -> "Span":
		"""
		Construct a Span from an existing location-like object.

		If `loc` is already a Span it is returned unchanged; otherwise the common
		location attributes are copied when present.
		"""
		if loc is None:
			return cls()
		if isinstance(loc, cls):
			return loc
		return cls(
			file=getattr(loc, "file", None) or getattr(loc, "filename", None) or None,
			line=getattr(loc, "line", None),
			column=getattr(loc, "column", None),
			end_line=getattr(loc, "end_line", None),
			end_column=getattr(loc, "end_column", None),
		)

	@classmethod
	def from_node(cls, node: ast.AST, lines: "LineTable", *, file: Optional[str] = None) -> "Span":
		"""Build a span for a Python `ast` node positioned within `lines`."""
		lineno = getattr(node, "lineno", None)
		if lineno is None:
			return cls(file=file)
		col = lines.char_column(lineno, getattr(node, "col_offset", 0) or 0)
		end_lineno = getattr(node, "end_lineno", None) or lineno
		end_col_bytes = getattr(node, "end_col_offset", None)
		end_col = lines.char_column(end_lineno, end_col_bytes) if end_col_bytes is not None else col
		return cls(
			file=file,
			line=lineno,
			column=col + 1,
			end_line=end_lineno,
			end_column=end_col + 1,
			start=lines.offset(lineno, col),
			end=lines.offset(end_lineno, end_col),
		)

	def describe(self) -> str:
		if self.line is None:
			return self.file or "<unknown>"
		base = f"{self.file}:{self.line}" if self.file else f"line {self.line}"
		if self.column is not None:
			base = f"{base}:{self.column}"
		return base


class LineTable:
	"""
	Maps `ast` positions (line, UTF-8 byte column) to character offsets.

	`ast` reports `col_offset` in UTF-8 bytes; edits and spans work in
	characters, so every conversion goes through this table.
	"""

	def __init__(self, source: str) -> None:
		self.source = source
		self._lines = source.splitlines(keepends=True)
		self._starts: list[int] = []
		pos = 0
		for text in self._lines:
			self._starts.append(pos)
			pos += len(text)
		self._starts.append(pos)

	def line_text(self, lineno: int) -> str:
		if 1 <= lineno <= len(self._lines):
			return self._lines[lineno - 1]
		return ""

	def char_column(self, lineno: int, byte_col: int) -> int:
		text = self.line_text(lineno)
		return len(text.encode("utf-8")[:byte_col].decode("utf-8", errors="ignore"))

	def offset(self, lineno: int, char_col: int) -> int:
		if lineno < 1:
			return 0
		if lineno > len(self._lines):
			return len(self.source)
		return self._starts[lineno - 1] + char_col

	def line_start(self, lineno: int) -> int:
		return self.offset(lineno, 0)

	def line_end(self, lineno: int) -> int:
		"""Offset just past the line terminator of `lineno` (or end of text)."""
		if lineno >= len(self._lines):
			return len(self.source)
		return self._starts[lineno]


__all__ = ["Span", "LineTable"]
