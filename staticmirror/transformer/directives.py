# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Rewriting of marker-module imports.

Transformed programs must not load the reflective marker module, so every
import (or export) of it is redirected to the runtime-free variant. Forms
whose bindings cannot be preserved by editing the module name are reported
and left alone.
"""

from __future__ import annotations

from typing import List, Set

from staticmirror.core.diagnostics import Diagnostic
from staticmirror.model.protocol import Directive, DirectiveForm, ModuleDecl, ProgramModel
from staticmirror.transformer import errors
from staticmirror.transformer.options import TransformOptions
from staticmirror.transformer.source_patch import SourcePatch

MODIFIED_IMPORT_COMMENT = "# Import modified by the reflectable transformer:"


def _reject(diagnostics: List[Diagnostic], directive: Directive, code: str, template: str, library: str) -> None:
	diagnostics.append(
		Diagnostic(
			message=errors.apply_template(template, {"library": library}),
			code=code,
			phase="codegen",
			span=directive.span,
		)
	)


def rewrite_marker_directives(
	model: ProgramModel,
	module: ModuleDecl,
	patch: SourcePatch,
	options: TransformOptions,
	diagnostics: List[Diagnostic],
) -> int:
	"""
	Redirect directives of `module` that name the marker module.

	Returns the number of directives rewritten.
	"""
	marker = options.marker_module
	static_pkg, _, static_leaf = options.static_marker_module.rpartition(".")
	marker_pkg, _, marker_leaf = marker.rpartition(".")
	commented: Set[int] = set()
	rewritten = 0
	for directive in model.directives_of(module):
		if directive.target != marker:
			continue
		if not directive.top_level:
			_reject(diagnostics, directive, errors.LIBRARY_UNSUPPORTED_DEFERRED, errors.LIBRARY_UNSUPPORTED_DEFERRED_MSG, marker)
			continue
		if directive.form is DirectiveForm.MEMBERS:
			_reject(diagnostics, directive, errors.LIBRARY_UNSUPPORTED_SHOW, errors.LIBRARY_UNSUPPORTED_SHOW_MSG, marker)
			continue
		if directive.form is DirectiveForm.MODULE_PLAIN:
			_reject(diagnostics, directive, errors.LIBRARY_UNSUPPORTED_PLAIN, errors.LIBRARY_UNSUPPORTED_PLAIN_MSG, marker)
			continue
		if directive.form is DirectiveForm.SUBMODULE:
			if static_pkg != marker_pkg:
				_reject(diagnostics, directive, errors.LIBRARY_UNSUPPORTED_SHOW, errors.LIBRARY_UNSUPPORTED_SHOW_MSG, marker)
				continue
			text = static_leaf if directive.alias else f"{static_leaf} as {marker_leaf}"
		else:
			text = options.static_marker_module
		if directive.statement_start not in commented:
			commented.add(directive.statement_start)
			patch.insert(directive.statement_start, f"{directive.indent}{MODIFIED_IMPORT_COMMENT}\n")
		patch.replace(directive.uri_start, directive.uri_end, text)
		rewritten += 1
	return rewritten


__all__ = ["MODIFIED_IMPORT_COMMENT", "rewrite_marker_directives"]
