# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diagnostic codes, message templates and transformer exceptions.

Templates use `{name}` placeholders filled by `apply_template`. Codes are
stable strings; tests and `--json` consumers match on them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

# --- diagnostic codes ---

METADATA_NOT_DIRECT_SUBCLASS = "metadata-not-direct-subclass"
SUPER_ARGUMENT_NON_CONST = "super-argument-non-const"
SUPER_ARGUMENT_NON_CLASS = "super-argument-non-class"
SUPER_ARGUMENT_WRONG_LIBRARY = "super-argument-wrong-library"
SUPER_ARGUMENT_UNSUPPORTED = "super-argument-unsupported"
SUPER_ARGUMENT_UNRESOLVED = "super-argument-unresolved"
SUPER_ARGUMENT_CYCLE = "super-argument-cycle"
SUPER_ARGUMENT_TOO_DEEP = "super-argument-too-deep"
SUPER_ARGUMENT_BAD_PAYLOAD = "super-argument-bad-payload"
CAPABILITY_NOT_SUPPORTED = "capability-not-supported"
DUPLICATE_ANNOTATION = "duplicate-annotation"
LIBRARY_UNSUPPORTED_DEFERRED = "library-unsupported-deferred"
LIBRARY_UNSUPPORTED_SHOW = "library-unsupported-show"
LIBRARY_UNSUPPORTED_PLAIN = "library-unsupported-plain"
REFLECTOR_SHAPE = "reflector-shape"
TRANSFORMED_TWICE = "transformed-twice"
TRANSFORM_CONFLICT = "transform-conflict"
MISSING_ENTRY_POINT = "missing-entry-point"
NOTHING_TO_TRANSFORM = "nothing-to-transform"
MARKER_NOT_FOUND = "marker-not-found"

# --- message templates ---

METADATA_NOT_DIRECT_SUBCLASS_MSG = (
	"Metadata '{type}' is not supported: a reflector class must list {marker} among its direct bases"
)
SUPER_ARGUMENT_NON_CONST_MSG = "'{name}' is not a constant; capabilities must be declared with typing.Final and bound once"
SUPER_ARGUMENT_NON_CLASS_MSG = "capability expression '{expr}' does not denote an instance of a class"
SUPER_ARGUMENT_WRONG_LIBRARY_MSG = "capability class '{element}' is not declared in {library}"
SUPER_ARGUMENT_UNSUPPORTED_MSG = "capability '{element}' is recognized but not yet supported"
SUPER_ARGUMENT_UNRESOLVED_MSG = "cannot resolve capability expression '{expr}'"
SUPER_ARGUMENT_CYCLE_MSG = "cyclic constant chain through '{name}'"
SUPER_ARGUMENT_TOO_DEEP_MSG = "constant chain longer than {limit} steps at '{name}'"
SUPER_ARGUMENT_BAD_PAYLOAD_MSG = "argument of '{element}' must be {expected}"
CAPABILITY_NOT_SUPPORTED_MSG = "reflector '{reflector}': {reason}"
DUPLICATE_ANNOTATION_MSG = "class '{cls}' is annotated more than once with reflector '{reflector}'"
LIBRARY_UNSUPPORTED_DEFERRED_MSG = "deferred (non top-level) import of {library} is not supported"
LIBRARY_UNSUPPORTED_SHOW_MSG = "importing names from {library} is not supported; import the module instead"
LIBRARY_UNSUPPORTED_PLAIN_MSG = "'import {library}' is not supported; use 'import {library} as <alias>'"
REFLECTOR_SHAPE_MSG = "reflector '{reflector}': {reason}"
TRANSFORMED_TWICE_MSG = "module '{module}' is transformed twice, both via {entry} and {previous}"
TRANSFORM_CONFLICT_MSG = "module '{module}' transforms differently via {entry} and {previous}; keeping the first"
MISSING_ENTRY_POINT_MSG = "missing entry point: {entry}"
NOTHING_TO_TRANSFORM_MSG = "nothing to transform"
MARKER_NOT_FOUND_MSG = "{entry}: {marker} is not reachable; module sources pass through unchanged"


def apply_template(template: str, values: Mapping[str, Any]) -> str:
	return template.format_map(dict(values))


# --- exceptions ---


class ReflectorShapeError(Exception):
	"""
	A reflector violates the constructor shape the transformer relies on.

	This is an internal fault: the world builder raises it and the pipeline
	abandons the whole unit with an `internal` diagnostic.
	"""

	def __init__(self, reflector: str, reason: str) -> None:
		self.reflector = reflector
		self.reason = reason
		super().__init__(apply_template(REFLECTOR_SHAPE_MSG, {"reflector": reflector, "reason": reason}))


class CapabilityNotSupportedError(Exception):
	"""A capability predicate met a recognized kind it cannot decide."""


@dataclass(frozen=True)
class TransformerConfigError(Exception):
	"""A structured configuration error (`reason_code` is stable)."""

	reason_code: str
	message: str

	def __str__(self) -> str:
		return self.format_human()

	def format_human(self) -> str:
		return f"[{self.reason_code}] {self.message}"

	def to_dict(self) -> dict[str, Any]:
		return {"reason_code": self.reason_code, "message": self.message}


__all__ = [
	"apply_template",
	"ReflectorShapeError",
	"CapabilityNotSupportedError",
	"TransformerConfigError",
]
