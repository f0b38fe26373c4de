"""
Common diagnostic structure for the model loader and transformer passes.

A diagnostic is a message plus optional code/phase/span metadata. Passes
append diagnostics to a list sink; only the driver renders them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a transformer diagnostic (error/warning/note)."""

	message: str
	code: str | None = None
	# Pass that produced the diagnostic ("load", "world", "codegen", "pipeline").
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def format_human(self) -> str:
		code = f"[{self.code}] " if self.code else ""
		text = f"{self.span.describe()}: {self.severity}: {code}{self.message}"
		for note in self.notes:
			text += f"\n  note: {note}"
		return text

	def to_dict(self) -> dict:
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
	return any(d.severity == "error" for d in diagnostics)


__all__ = ["Diagnostic", "has_errors"]
