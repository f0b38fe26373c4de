# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Restricted expression variant used for annotation and capability arguments.

The Program Model never hands raw `ast` nodes to the transformer. Decorators,
super-call arguments and constant initializers are converted into this closed
set of shapes; everything the transformer does not understand becomes
`Opaque`, which the constant resolver treats as not further reducible.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from staticmirror.core.span import LineTable, Span


@dataclass(frozen=True)
class IdentRef:
	"""Simple identifier reference (`reflector`)."""

	name: str
	module: str
	span: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class QualifiedRef:
	"""Dotted reference (`capability.instance_invoke_capability`, `K.p`)."""

	qualifier: Tuple[str, ...]
	name: str
	module: str
	span: Span = field(default_factory=Span, compare=False)

	@property
	def dotted(self) -> str:
		return ".".join((*self.qualifier, self.name))


Reference = Union[IdentRef, QualifiedRef]


@dataclass(frozen=True)
class Instantiation:
	"""Call of a (possibly qualified) name: a constructor-like literal."""

	callee: Reference
	args: Tuple["ConstExpr", ...]
	kwargs: Tuple[Tuple[str, "ConstExpr"], ...]
	module: str
	span: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class Literal:
	"""Python constant (`"arg0"`, `13`, `True`, `None`)."""

	value: object
	module: str
	span: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class ListLiteral:
	"""List or tuple display."""

	elements: Tuple["ConstExpr", ...]
	module: str
	span: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class Opaque:
	"""Any other expression; `kind` is the `ast` node class name."""

	kind: str
	module: str
	span: Span = field(default_factory=Span, compare=False)


ConstExpr = Union[IdentRef, QualifiedRef, Instantiation, Literal, ListLiteral, Opaque]


def _reference_from_ast(node: ast.expr, module: str, span: Span) -> Optional[Reference]:
	if isinstance(node, ast.Name):
		return IdentRef(name=node.id, module=module, span=span)
	parts: list[str] = []
	cur: ast.expr = node
	while isinstance(cur, ast.Attribute):
		parts.append(cur.attr)
		cur = cur.value
	if not parts or not isinstance(cur, ast.Name):
		return None
	parts.append(cur.id)
	parts.reverse()
	return QualifiedRef(qualifier=tuple(parts[:-1]), name=parts[-1], module=module, span=span)


def expr_from_ast(node: ast.expr, module: str, lines: LineTable, *, file: Optional[str] = None) -> ConstExpr:
	"""Convert a Python expression node into a `ConstExpr`."""
	span = Span.from_node(node, lines, file=file)
	if isinstance(node, (ast.Name, ast.Attribute)):
		ref = _reference_from_ast(node, module, span)
		if ref is not None:
			return ref
		return Opaque(kind=type(node).__name__, module=module, span=span)
	if isinstance(node, ast.Call):
		callee_span = Span.from_node(node.func, lines, file=file)
		callee = _reference_from_ast(node.func, module, callee_span)
		if callee is None or any(isinstance(a, ast.Starred) for a in node.args):
			return Opaque(kind="Call", module=module, span=span)
		if any(kw.arg is None for kw in node.keywords):
			return Opaque(kind="Call", module=module, span=span)
		return Instantiation(
			callee=callee,
			args=tuple(expr_from_ast(a, module, lines, file=file) for a in node.args),
			kwargs=tuple((kw.arg, expr_from_ast(kw.value, module, lines, file=file)) for kw in node.keywords),
			module=module,
			span=span,
		)
	if isinstance(node, ast.Constant):
		return Literal(value=node.value, module=module, span=span)
	if isinstance(node, (ast.List, ast.Tuple)):
		return ListLiteral(
			elements=tuple(expr_from_ast(e, module, lines, file=file) for e in node.elts),
			module=module,
			span=span,
		)
	return Opaque(kind=type(node).__name__, module=module, span=span)


__all__ = [
	"IdentRef",
	"QualifiedRef",
	"Reference",
	"Instantiation",
	"Literal",
	"ListLiteral",
	"Opaque",
	"ConstExpr",
	"expr_from_ast",
]
