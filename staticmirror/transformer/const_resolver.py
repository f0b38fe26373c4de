# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Constant resolver for capability literals.

Reduces an expression to the instantiation it denotes by chasing references
through `Final` constants, then maps the instantiated vocabulary class to a
`CapabilityToken`. No folding of any kind is performed: a reference to a
constant is replaced by the constant's initializer, nothing else.

Failures are reported to the diagnostics sink and yield None; the resolver
never raises for malformed user input.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set

from staticmirror.core.diagnostics import Diagnostic
from staticmirror.core.span import Span
from staticmirror.model.const_expr import ConstExpr, IdentRef, Instantiation, ListLiteral, Literal, QualifiedRef
from staticmirror.model.protocol import ConstantDecl, ProgramModel, TypeDecl
from staticmirror.transformer import errors
from staticmirror.transformer.capabilities import UNIVERSAL_ROOT, CapabilityKind, CapabilitySet, CapabilityToken
from staticmirror.transformer.options import TransformOptions

# Vocabulary classes without payload.
_PLAIN_KINDS: Dict[str, CapabilityKind] = {
	"_InstanceInvokeCapability": CapabilityKind.INSTANCE_INVOKE,
	"_InvokingCapability": CapabilityKind.INVOKE_MEMBERS,
	"_StaticInvokeCapability": CapabilityKind.STATIC_INVOKE,
	"_MetadataCapability": CapabilityKind.METADATA,
	"_DeclarationsCapability": CapabilityKind.DECLARATIONS,
	"_LibraryCapability": CapabilityKind.LIBRARY,
	"_TypeCapability": CapabilityKind.TYPE,
}

# Vocabulary classes taking a member name: class name -> (kind, parameter name).
_NAME_KINDS = {
	"InvokeInstanceMemberCapability": (CapabilityKind.INSTANCE_MEMBER_INVOKE, "name"),
	"InvokeStaticMemberCapability": (CapabilityKind.STATIC_MEMBER_INVOKE, "name"),
}

# Vocabulary classes taking a bounding type.
_BOUND_KINDS = {
	"InvokeMembersWithMetadataCapability": (CapabilityKind.INVOKE_WITH_METADATA, "metadata_type"),
	"InvokeInstanceMembersUpToSuperCapability": (CapabilityKind.INSTANCE_INVOKE_UP_TO_SUPER, "super_type"),
}

# Recognized, but not implemented by the generator.
_UNSUPPORTED_NAMES = {
	"NewInstanceCapability",
	"SubtypeQuantifyCapability",
	"SuperclassQuantifyCapability",
	"TypeRelationsCapability",
}


def describe_expr(expr: ConstExpr) -> str:
	"""Short source-like rendering of `expr` for messages."""
	if isinstance(expr, IdentRef):
		return expr.name
	if isinstance(expr, QualifiedRef):
		return expr.dotted
	if isinstance(expr, Instantiation):
		return f"{describe_expr(expr.callee)}(...)"
	if isinstance(expr, Literal):
		return repr(expr.value)
	if isinstance(expr, ListLiteral):
		return "[...]"
	return f"<{expr.kind}>"


class ConstantResolver:
	def __init__(self, model: ProgramModel, options: TransformOptions, diagnostics: List[Diagnostic]) -> None:
		self.model = model
		self.options = options
		self.diagnostics = diagnostics

	def _error(self, code: str, template: str, span: Span, **values: object) -> None:
		self.diagnostics.append(
			Diagnostic(message=errors.apply_template(template, values), code=code, phase="world", span=span)
		)

	def chase(self, expr: ConstExpr) -> Optional[ConstExpr]:
		"""
		Follow constant references starting at `expr`.

		Returns the first expression that is not a reference to a constant
		(an instantiation, a literal, a reference to a class or module, or an
		unresolvable reference), or None after reporting a failure.
		"""
		visited: Set[str] = set()
		current = expr
		while isinstance(current, (IdentRef, QualifiedRef)):
			decl = self.model.resolve_reference(current)
			if not isinstance(decl, ConstantDecl):
				return current
			key = decl.qualified_name
			if key in visited:
				self._error(errors.SUPER_ARGUMENT_CYCLE, errors.SUPER_ARGUMENT_CYCLE_MSG, current.span, name=key)
				return None
			if len(visited) >= self.options.max_constant_depth:
				self._error(
					errors.SUPER_ARGUMENT_TOO_DEEP,
					errors.SUPER_ARGUMENT_TOO_DEEP_MSG,
					current.span,
					name=key,
					limit=self.options.max_constant_depth,
				)
				return None
			if not decl.is_const or decl.initializer is None:
				self._error(errors.SUPER_ARGUMENT_NON_CONST, errors.SUPER_ARGUMENT_NON_CONST_MSG, decl.span, name=key)
				return None
			visited.add(key)
			current = decl.initializer
		return current

	def instantiated_type(self, expr: ConstExpr) -> Optional[TypeDecl]:
		"""
		Return the class instantiated by `expr` after chasing, or None.

		Silent: used to classify decorators, where unknown shapes are ignored.
		"""
		value = self._chase_quietly(expr)
		if not isinstance(value, Instantiation):
			return None
		callee = self.model.resolve_reference(value.callee)
		return callee if isinstance(callee, TypeDecl) else None

	def _chase_quietly(self, expr: ConstExpr) -> Optional[ConstExpr]:
		sink: List[Diagnostic] = []
		saved = self.diagnostics
		self.diagnostics = sink
		try:
			return self.chase(expr)
		finally:
			self.diagnostics = saved

	def capability_of(self, expr: ConstExpr) -> Optional[CapabilityToken]:
		"""Resolve one capability expression to its token, or report and return None."""
		value = self.chase(expr)
		if value is None:
			return None
		if not isinstance(value, Instantiation):
			self._error(
				errors.SUPER_ARGUMENT_NON_CLASS, errors.SUPER_ARGUMENT_NON_CLASS_MSG, value.span, expr=describe_expr(value)
			)
			return None
		callee = self.model.resolve_reference(value.callee)
		if callee is None:
			self._error(
				errors.SUPER_ARGUMENT_UNRESOLVED,
				errors.SUPER_ARGUMENT_UNRESOLVED_MSG,
				value.span,
				expr=describe_expr(value),
			)
			return None
		if not isinstance(callee, TypeDecl):
			self._error(
				errors.SUPER_ARGUMENT_NON_CLASS, errors.SUPER_ARGUMENT_NON_CLASS_MSG, value.span, expr=describe_expr(value)
			)
			return None
		if callee.module != self.options.capability_module:
			self._error(
				errors.SUPER_ARGUMENT_WRONG_LIBRARY,
				errors.SUPER_ARGUMENT_WRONG_LIBRARY_MSG,
				value.span,
				element=callee.qualified_name,
				library=self.options.capability_module,
			)
			return None
		return self._token_for(callee, value)

	def _token_for(self, callee: TypeDecl, value: Instantiation) -> Optional[CapabilityToken]:
		name = callee.name
		if name in _PLAIN_KINDS:
			return CapabilityToken(_PLAIN_KINDS[name])
		if name in _NAME_KINDS:
			kind, param = _NAME_KINDS[name]
			member = self._string_payload(callee, value, param)
			return CapabilityToken(kind, name=member) if member is not None else None
		if name in _BOUND_KINDS:
			kind, param = _BOUND_KINDS[name]
			bound = self._type_payload(callee, value, param)
			return CapabilityToken(kind, bound=bound) if bound is not None else None
		if name in _UNSUPPORTED_NAMES:
			return CapabilityToken(CapabilityKind.UNSUPPORTED, name=name)
		self._error(
			errors.SUPER_ARGUMENT_UNSUPPORTED, errors.SUPER_ARGUMENT_UNSUPPORTED_MSG, value.span, element=callee.qualified_name
		)
		return None

	def _single_argument(self, callee: TypeDecl, value: Instantiation, param: str, expected: str) -> Optional[ConstExpr]:
		kwargs = dict(value.kwargs)
		if len(value.args) + len(kwargs) == 1:
			if value.args:
				return value.args[0]
			if param in kwargs:
				return kwargs[param]
		self._error(
			errors.SUPER_ARGUMENT_BAD_PAYLOAD,
			errors.SUPER_ARGUMENT_BAD_PAYLOAD_MSG,
			value.span,
			element=callee.name,
			expected=expected,
		)
		return None

	def _string_payload(self, callee: TypeDecl, value: Instantiation, param: str) -> Optional[str]:
		expected = "a single string literal"
		arg = self._single_argument(callee, value, param, expected)
		if arg is None:
			return None
		reduced = self.chase(arg)
		if reduced is None:
			return None
		if isinstance(reduced, Literal) and isinstance(reduced.value, str):
			return reduced.value
		self._error(
			errors.SUPER_ARGUMENT_BAD_PAYLOAD, errors.SUPER_ARGUMENT_BAD_PAYLOAD_MSG, arg.span, element=callee.name, expected=expected
		)
		return None

	def _type_payload(self, callee: TypeDecl, value: Instantiation, param: str) -> Optional[str]:
		expected = "a single class reference"
		arg = self._single_argument(callee, value, param, expected)
		if arg is None:
			return None
		reduced = self.chase(arg)
		if reduced is None:
			return None
		if isinstance(reduced, (IdentRef, QualifiedRef)):
			target = self.model.resolve_reference(reduced)
			if isinstance(target, TypeDecl):
				return target.qualified_name
			# Builtins are outside the closed world; only the root class is meaningful.
			if target is None and isinstance(reduced, IdentRef) and reduced.name == UNIVERSAL_ROOT:
				return UNIVERSAL_ROOT
		self._error(
			errors.SUPER_ARGUMENT_BAD_PAYLOAD, errors.SUPER_ARGUMENT_BAD_PAYLOAD_MSG, arg.span, element=callee.name, expected=expected
		)
		return None

	def capability_set(self, elements: Sequence[ConstExpr]) -> Optional[CapabilitySet]:
		"""Resolve every element; any failure (all are reported) yields None."""
		tokens: List[CapabilityToken] = []
		ok = True
		for element in elements:
			token = self.capability_of(element)
			if token is None:
				ok = False
			else:
				tokens.append(token)
		return CapabilitySet(tokens) if ok else None


__all__ = ["ConstantResolver", "describe_expr"]
