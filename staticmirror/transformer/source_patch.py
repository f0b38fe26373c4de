# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Offset-based source edits.

Edits address the original text only; `apply` sorts them stably so inserts
at one offset keep the order they were recorded in. Overlapping replacements
and offsets outside the text are rejected with `PatchConflictError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


class PatchConflictError(ValueError):
	pass


@dataclass(frozen=True)
class SourceEdit:
	start: int
	end: int
	text: str

	@property
	def is_insert(self) -> bool:
		return self.start == self.end


class SourcePatch:
	def __init__(self, source: str) -> None:
		self.source = source
		self.edits: List[SourceEdit] = []

	def _check_range(self, start: int, end: int) -> None:
		if start < 0 or end > len(self.source) or start > end:
			raise PatchConflictError(f"edit range {start}..{end} is outside 0..{len(self.source)}")

	def insert(self, offset: int, text: str) -> None:
		self._check_range(offset, offset)
		for edit in self.edits:
			if not edit.is_insert and edit.start < offset < edit.end:
				raise PatchConflictError(f"insert at {offset} falls inside replacement {edit.start}..{edit.end}")
		self.edits.append(SourceEdit(offset, offset, text))

	def replace(self, start: int, end: int, text: str) -> None:
		self._check_range(start, end)
		for edit in self.edits:
			if edit.is_insert:
				if start < edit.start < end:
					raise PatchConflictError(f"replacement {start}..{end} covers insert at {edit.start}")
			elif start < edit.end and edit.start < end:
				raise PatchConflictError(f"replacement {start}..{end} overlaps {edit.start}..{edit.end}")
		self.edits.append(SourceEdit(start, end, text))

	def append(self, text: str) -> None:
		self.insert(len(self.source), text)

	def is_empty(self) -> bool:
		return not self.edits

	def apply(self) -> str:
		# Inserts before replacements at the same offset; otherwise recording order.
		ordered = sorted(enumerate(self.edits), key=lambda item: (item[1].start, 0 if item[1].is_insert else 1, item[0]))
		out: List[str] = []
		pos = 0
		for _, edit in ordered:
			out.append(self.source[pos : edit.start])
			out.append(edit.text)
			pos = edit.end
		out.append(self.source[pos:])
		return "".join(out)


__all__ = ["PatchConflictError", "SourceEdit", "SourcePatch"]
