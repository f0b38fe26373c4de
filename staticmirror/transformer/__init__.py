# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Ahead-of-time reflection transformer.

`transform_program` runs the whole pipeline; the other modules are its stages
(world building, capability resolution, code generation, source patching).
"""

from .capabilities import CapabilityKind, CapabilitySet, CapabilityToken, InvokeFilter
from .errors import CapabilityNotSupportedError, ReflectorShapeError, TransformerConfigError
from .options import TransformOptions
from .pipeline import TransformResult, transform_program
from .source_patch import PatchConflictError, SourceEdit, SourcePatch

__all__ = [
	"CapabilityKind",
	"CapabilitySet",
	"CapabilityToken",
	"InvokeFilter",
	"CapabilityNotSupportedError",
	"ReflectorShapeError",
	"TransformerConfigError",
	"TransformOptions",
	"TransformResult",
	"transform_program",
	"PatchConflictError",
	"SourceEdit",
	"SourcePatch",
]
