# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Program Model implementation over Python source modules.

Each module is parsed once with the stdlib `ast` module into a `ParsedModule`
holding its top-level bindings. `PythonProgramModel` answers the
`ProgramModel` queries for one closed world of parsed modules.

Binding rules (MVP):
- only top-level statements bind module symbols; later bindings win;
- a variable is constant only when annotated `Final` and bound exactly once;
- `import a.b` binds `a`, `import a.b as x` binds `x` to `a.b`;
- `from m import n` binds `n` lazily (symbol of `m`, else submodule `m.n`);
- `from m import *` falls back to the public symbols of `m`.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from staticmirror.core.span import LineTable, Span
from staticmirror.model.const_expr import ConstExpr, IdentRef, QualifiedRef, Reference, expr_from_ast
from staticmirror.model.protocol import (
	ClassBodyInfo,
	ConstantDecl,
	ConstructorDecl,
	Declaration,
	Directive,
	DirectiveForm,
	DirectiveKind,
	MemberKind,
	MethodDecl,
	ModuleDecl,
	ParamShape,
	TypeDecl,
)


@dataclass(frozen=True)
class ModuleSource:
	name: str
	source: str
	file: Optional[str] = None
	is_package: bool = False


@dataclass(frozen=True)
class _ClassBinding:
	decl: TypeDecl


@dataclass(frozen=True)
class _VarBinding:
	decl: ConstantDecl


@dataclass(frozen=True)
class _ModuleBinding:
	name: str


@dataclass(frozen=True)
class _ImportBinding:
	module: str
	name: str


_Binding = Union[_ClassBinding, _VarBinding, _ModuleBinding, _ImportBinding]


@dataclass(frozen=True)
class _ModulePath:
	"""A module reached during resolution; it need not be part of the unit."""

	name: str


_Entity = Union[TypeDecl, ConstantDecl, _ModulePath]

_FROM_MODULE_RE = re.compile(r"from\s+((?:\.\s*)*[\w.]*)")
_PROPERTY_DECORATORS = {"property", "cached_property"}
_PROPERTY_ACCESSORS = {"setter", "getter", "deleter"}


def resolve_relative(module: str, is_package: bool, target: Optional[str], level: int) -> Optional[str]:
	"""Resolve a (possibly relative) `from` import target to an absolute name."""
	if level == 0:
		return target
	parts = module.split(".")
	if not is_package:
		parts = parts[:-1]
	drop = level - 1
	if drop > len(parts):
		return None
	if drop:
		parts = parts[:-drop]
	if target:
		parts = [*parts, target]
	return ".".join(parts) if parts else None


def _is_final(annotation: ast.expr) -> bool:
	if isinstance(annotation, ast.Subscript):
		annotation = annotation.value
	if isinstance(annotation, ast.Name):
		return annotation.id == "Final"
	if isinstance(annotation, ast.Attribute):
		return annotation.attr == "Final"
	return False


def _leading_ws(text: str) -> str:
	return text[: len(text) - len(text.lstrip(" \t"))]


def _decorator_names(node: ast.FunctionDef | ast.AsyncFunctionDef) -> List[str]:
	out: List[str] = []
	for dec in node.decorator_list:
		if isinstance(dec, ast.Call):
			dec = dec.func
		if isinstance(dec, ast.Name):
			out.append(dec.id)
		elif isinstance(dec, ast.Attribute):
			out.append(dec.attr)
	return out


def member_kind(node: ast.FunctionDef | ast.AsyncFunctionDef) -> MemberKind:
	name = node.name
	if name.startswith("__") and name.endswith("__") and len(name) > 4:
		return MemberKind.OPERATOR
	if name.startswith("__"):
		return MemberKind.MANGLED
	decorators = _decorator_names(node)
	if "staticmethod" in decorators:
		return MemberKind.STATIC
	if "classmethod" in decorators:
		return MemberKind.CLASS
	if any(d in _PROPERTY_DECORATORS or d in _PROPERTY_ACCESSORS for d in decorators):
		return MemberKind.PROPERTY
	return MemberKind.INSTANCE


def param_shape(args: ast.arguments, *, drop_receiver: bool) -> ParamShape:
	positional = [a.arg for a in (*args.posonlyargs, *args.args)]
	positional_only = len(args.posonlyargs)
	if drop_receiver and positional:
		positional = positional[1:]
		positional_only = max(0, positional_only - 1)
	required = max(0, len(positional) - len(args.defaults))
	keyword_only = tuple(a.arg for a in args.kwonlyargs)
	required_kw = tuple(a.arg for a, default in zip(args.kwonlyargs, args.kw_defaults) if default is None)
	return ParamShape(
		positional=tuple(positional),
		positional_only=positional_only,
		required_positional=required,
		keyword_only=keyword_only,
		required_keyword_only=required_kw,
		var_positional=args.vararg is not None,
		var_keyword=args.kwarg is not None,
	)


class ParsedModule:
	"""One parsed module plus its top-level symbol table."""

	def __init__(self, src: ModuleSource, tree: ast.Module) -> None:
		self.name = src.name
		self.file = src.file
		self.source = src.source
		self.is_package = src.is_package
		self.tree = tree
		self.lines = LineTable(src.source)
		self.decl = ModuleDecl(name=src.name, file=src.file, is_package=src.is_package)
		self.symbols: Dict[str, _Binding] = {}
		self.star_imports: List[str] = []
		self.classes: Dict[str, ast.ClassDef] = {}
		self.class_order: List[str] = []
		self._collect()

	@classmethod
	def parse(cls, src: ModuleSource) -> "ParsedModule":
		"""Parse `src`; raises SyntaxError for invalid source."""
		tree = ast.parse(src.source, filename=src.file or src.name)
		return cls(src, tree)

	def span(self, node: ast.AST) -> Span:
		return Span.from_node(node, self.lines, file=self.file or self.name)

	def expr(self, node: ast.expr) -> ConstExpr:
		return expr_from_ast(node, self.name, self.lines, file=self.file or self.name)

	def absolute(self, target: Optional[str], level: int) -> Optional[str]:
		return resolve_relative(self.name, self.is_package, target, level)

	def _collect(self) -> None:
		counts: Dict[str, int] = {}
		for stmt in self.tree.body:
			for name in _bound_names(stmt):
				counts[name] = counts.get(name, 0) + 1
		for stmt in self.tree.body:
			if isinstance(stmt, ast.ClassDef):
				decl = TypeDecl(module=self.name, name=stmt.name, span=self.span(stmt))
				self.symbols[stmt.name] = _ClassBinding(decl)
				if stmt.name not in self.classes:
					self.class_order.append(stmt.name)
				self.classes[stmt.name] = stmt
			elif isinstance(stmt, ast.Import):
				for alias in stmt.names:
					if alias.asname:
						self.symbols[alias.asname] = _ModuleBinding(alias.name)
					else:
						head = alias.name.split(".", 1)[0]
						self.symbols[head] = _ModuleBinding(head)
			elif isinstance(stmt, ast.ImportFrom):
				base = self.absolute(stmt.module, stmt.level)
				if base is None:
					continue
				for alias in stmt.names:
					if alias.name == "*":
						self.star_imports.append(base)
					else:
						self.symbols[alias.asname or alias.name] = _ImportBinding(base, alias.name)
			else:
				for decl in _variable_decls(self, stmt, owner=None, counts=counts):
					self.symbols[decl.name] = _VarBinding(decl)


def _bound_names(stmt: ast.stmt) -> List[str]:
	if isinstance(stmt, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
		return [stmt.name]
	if isinstance(stmt, ast.Assign):
		out: List[str] = []
		for target in stmt.targets:
			out.extend(n.id for n in ast.walk(target) if isinstance(n, ast.Name))
		return out
	if isinstance(stmt, (ast.AnnAssign, ast.AugAssign)) and isinstance(stmt.target, ast.Name):
		return [stmt.target.id]
	return []


def _variable_decls(pm: ParsedModule, stmt: ast.stmt, *, owner: Optional[str], counts: Dict[str, int]) -> List[ConstantDecl]:
	out: List[ConstantDecl] = []
	if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
		name = stmt.target.id
		initializer = pm.expr(stmt.value) if stmt.value is not None else None
		is_const = _is_final(stmt.annotation) and initializer is not None and counts.get(name, 0) == 1
		out.append(
			ConstantDecl(
				module=pm.name, name=name, owner=owner, is_const=is_const, initializer=initializer, span=pm.span(stmt)
			)
		)
	elif isinstance(stmt, ast.Assign):
		for target in stmt.targets:
			if isinstance(target, ast.Name):
				out.append(
					ConstantDecl(
						module=pm.name,
						name=target.id,
						owner=owner,
						is_const=False,
						initializer=pm.expr(stmt.value),
						span=pm.span(stmt),
					)
				)
	return out


class PythonProgramModel:
	"""`ProgramModel` over a closed world of `ParsedModule`s."""

	def __init__(self, parsed: Iterable[ParsedModule]) -> None:
		self._parsed: Dict[str, ParsedModule] = {pm.name: pm for pm in parsed}
		self._types: Dict[TypeDecl, Tuple[ParsedModule, ast.ClassDef]] = {}
		self._class_vars: Dict[TypeDecl, Dict[str, ConstantDecl]] = {}
		self._linear: Dict[TypeDecl, List[TypeDecl]] = {}
		for pm in self._parsed.values():
			for cname in pm.class_order:
				node = pm.classes[cname]
				decl = TypeDecl(module=pm.name, name=cname, span=pm.span(node))
				self._types[decl] = (pm, node)

	# --- modules ---

	def modules(self) -> List[ModuleDecl]:
		return [self._parsed[name].decl for name in sorted(self._parsed)]

	def module(self, name: str) -> Optional[ModuleDecl]:
		pm = self._parsed.get(name)
		return pm.decl if pm is not None else None

	def source_of(self, module: ModuleDecl) -> str:
		return self._parsed[module.name].source

	def module_of(self, type_decl: TypeDecl) -> ModuleDecl:
		return self._parsed[type_decl.module].decl

	def import_reference(self, target: ModuleDecl, from_module: ModuleDecl) -> str:
		return target.name

	# --- types ---

	def types_of(self, module: ModuleDecl) -> List[TypeDecl]:
		pm = self._parsed[module.name]
		return [TypeDecl(module=pm.name, name=c, span=pm.span(pm.classes[c])) for c in pm.class_order]

	def _class(self, type_decl: TypeDecl) -> Tuple[ParsedModule, ast.ClassDef]:
		return self._types[type_decl]

	def annotations_of(self, type_decl: TypeDecl) -> List[ConstExpr]:
		pm, node = self._class(type_decl)
		return [pm.expr(d) for d in node.decorator_list]

	def methods_of(self, type_decl: TypeDecl) -> List[MethodDecl]:
		pm, node = self._class(type_decl)
		by_name: Dict[str, MethodDecl] = {}
		for stmt in node.body:
			if not isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
				continue
			kind = member_kind(stmt)
			by_name[stmt.name] = MethodDecl(
				name=stmt.name,
				kind=kind,
				params=param_shape(stmt.args, drop_receiver=kind is not MemberKind.STATIC),
				owner=type_decl,
				span=pm.span(stmt),
			)
		return list(by_name.values())

	def constructors_of(self, type_decl: TypeDecl) -> List[ConstructorDecl]:
		pm, node = self._class(type_decl)
		out: List[ConstructorDecl] = []
		for stmt in node.body:
			if isinstance(stmt, ast.FunctionDef) and stmt.name == "__init__":
				out.append(_constructor_decl(pm, type_decl, stmt))
		return out

	def static_field(self, type_decl: TypeDecl, name: str) -> Optional[ConstantDecl]:
		if type_decl not in self._types:
			return None
		fields = self._class_vars.get(type_decl)
		if fields is None:
			pm, node = self._class(type_decl)
			counts: Dict[str, int] = {}
			for stmt in node.body:
				for bound in _bound_names(stmt):
					counts[bound] = counts.get(bound, 0) + 1
			fields = {}
			for stmt in node.body:
				for decl in _variable_decls(pm, stmt, owner=type_decl.name, counts=counts):
					fields[decl.name] = decl
			self._class_vars[type_decl] = fields
		return fields.get(name)

	def class_body_info(self, type_decl: TypeDecl) -> ClassBodyInfo:
		pm, node = self._class(type_decl)
		first = node.body[0]
		end_line = node.end_lineno or node.lineno
		members: List[str] = []
		for stmt in node.body:
			members.extend(_bound_names(stmt))
		return ClassBodyInfo(
			insert_at=pm.lines.line_end(end_line),
			indent=_leading_ws(pm.lines.line_text(first.lineno)),
			inline_body=first.lineno == node.lineno,
			member_names=tuple(members),
		)

	# --- supertypes ---

	def _bases(self, type_decl: TypeDecl) -> List[TypeDecl]:
		if type_decl not in self._types:
			return []
		pm, node = self._class(type_decl)
		out: List[TypeDecl] = []
		for base in node.bases:
			expr = pm.expr(base)
			if isinstance(expr, (IdentRef, QualifiedRef)):
				resolved = self.resolve_reference(expr)
				if isinstance(resolved, TypeDecl):
					out.append(resolved)
		return out

	def direct_supertypes(self, type_decl: TypeDecl) -> List[TypeDecl]:
		return list(self._bases(type_decl))

	def all_supertypes(self, type_decl: TypeDecl) -> List[TypeDecl]:
		return self._linearize(type_decl, frozenset())[1:]

	def _linearize(self, type_decl: TypeDecl, active: frozenset) -> List[TypeDecl]:
		"""C3 linearization over resolved bases; inconsistent orders keep going in base order."""
		cached = self._linear.get(type_decl)
		if cached is not None:
			return cached
		if type_decl in active:
			return [type_decl]
		bases = self._bases(type_decl)
		nested = active | {type_decl}
		seqs = [list(self._linearize(b, nested)) for b in bases]
		seqs.append(list(bases))
		seqs = [s for s in seqs if s]
		result = [type_decl]
		while seqs:
			head = None
			for seq in seqs:
				candidate = seq[0]
				if not any(candidate in s[1:] for s in seqs):
					head = candidate
					break
			if head is None:
				head = seqs[0][0]
			if head not in result:
				result.append(head)
			for seq in seqs:
				if seq and seq[0] == head:
					seq.pop(0)
			seqs = [s for s in seqs if s]
		self._linear[type_decl] = result
		return result

	def is_same_declaration(self, a: Optional[Declaration], b: Optional[Declaration]) -> bool:
		if a is None or b is None:
			return False
		return type(a) is type(b) and a == b

	# --- name resolution ---

	def _binding_entity(self, binding: _Binding, seen: Set[Tuple[str, str]]) -> Optional[_Entity]:
		if isinstance(binding, _ClassBinding):
			return binding.decl
		if isinstance(binding, _VarBinding):
			return binding.decl
		if isinstance(binding, _ModuleBinding):
			return _ModulePath(binding.name)
		key = (binding.module, binding.name)
		if key in seen:
			return None
		seen.add(key)
		return self._member(_ModulePath(binding.module), binding.name, seen)

	def _lookup_name(self, module: str, name: str, seen: Set[Tuple[str, str]], *, public_only: bool = False) -> Optional[_Entity]:
		pm = self._parsed.get(module)
		if pm is None:
			return None
		if public_only and name.startswith("_"):
			return None
		binding = pm.symbols.get(name)
		if binding is not None:
			return self._binding_entity(binding, seen)
		for star in pm.star_imports:
			key = (star, "*" + name)
			if key in seen:
				continue
			seen.add(key)
			found = self._lookup_name(star, name, seen, public_only=True)
			if found is not None:
				return found
		return None

	def _member(self, entity: _Entity, name: str, seen: Set[Tuple[str, str]]) -> Optional[_Entity]:
		if isinstance(entity, _ModulePath):
			found = self._lookup_name(entity.name, name, seen)
			if found is not None:
				return found
			sub = f"{entity.name}.{name}"
			if sub in self._parsed:
				return _ModulePath(sub)
			return None
		if isinstance(entity, TypeDecl):
			return self.static_field(entity, name)
		return None

	def _resolve_entity(self, ref: Reference) -> Optional[_Entity]:
		seen: Set[Tuple[str, str]] = set()
		if isinstance(ref, IdentRef):
			return self._lookup_name(ref.module, ref.name, seen)
		entity = self._lookup_name(ref.module, ref.qualifier[0], seen)
		for part in (*ref.qualifier[1:], ref.name):
			if entity is None:
				return None
			entity = self._member(entity, part, seen)
		return entity

	def resolve_reference(self, ref: Reference) -> Optional[Declaration]:
		entity = self._resolve_entity(ref)
		if isinstance(entity, _ModulePath):
			return self.module(entity.name)
		return entity

	def resolve_constant(self, ref: Reference) -> Optional[ConstantDecl]:
		resolved = self.resolve_reference(ref)
		return resolved if isinstance(resolved, ConstantDecl) else None

	# --- directives ---

	def directives_of(self, module: ModuleDecl) -> List[Directive]:
		pm = self._parsed[module.name]
		top_level = {id(stmt) for stmt in pm.tree.body}
		out: List[Directive] = []
		for node in ast.walk(pm.tree):
			if isinstance(node, ast.Import):
				out.extend(self._import_directives(pm, node, id(node) in top_level))
			elif isinstance(node, ast.ImportFrom):
				out.extend(self._from_directives(pm, node, id(node) in top_level))
		out.sort(key=lambda d: d.uri_start)
		return out

	def _statement_layout(self, pm: ParsedModule, node: ast.stmt) -> Tuple[int, str]:
		text = pm.lines.line_text(node.lineno)
		return pm.lines.line_start(node.lineno), _leading_ws(text)

	def _alias_start(self, pm: ParsedModule, alias: ast.alias) -> int:
		return pm.lines.offset(alias.lineno, pm.lines.char_column(alias.lineno, alias.col_offset))

	def _import_directives(self, pm: ParsedModule, node: ast.Import, top_level: bool) -> List[Directive]:
		stmt_start, indent = self._statement_layout(pm, node)
		out: List[Directive] = []
		for alias in node.names:
			start = self._alias_start(pm, alias)
			out.append(
				Directive(
					kind=DirectiveKind.IMPORT,
					form=DirectiveForm.MODULE_ALIAS if alias.asname else DirectiveForm.MODULE_PLAIN,
					target=alias.name,
					alias=alias.asname,
					names=(),
					top_level=top_level,
					uri_start=start,
					uri_end=start + len(alias.name),
					statement_start=stmt_start,
					indent=indent,
					span=pm.span(node),
				)
			)
		return out

	def _from_directives(self, pm: ParsedModule, node: ast.ImportFrom, top_level: bool) -> List[Directive]:
		base = pm.absolute(node.module, node.level)
		if base is None:
			return []
		stmt_start, indent = self._statement_layout(pm, node)
		node_start = pm.lines.offset(node.lineno, pm.lines.char_column(node.lineno, node.col_offset))
		match = _FROM_MODULE_RE.match(pm.source, node_start)
		if match is None:
			return []
		uri_text = match.group(1).rstrip()
		uri_start = match.start(1)
		uri_end = uri_start + len(uri_text)
		span = pm.span(node)
		common = dict(kind=DirectiveKind.IMPORT, top_level=top_level, statement_start=stmt_start, indent=indent, span=span)
		if any(alias.name == "*" for alias in node.names):
			return [
				Directive(form=DirectiveForm.STAR, target=base, alias=None, names=(), uri_start=uri_start, uri_end=uri_end, **common)
			]
		out: List[Directive] = []
		members: List[str] = []
		base_pm = self._parsed.get(base)
		for alias in node.names:
			sub = f"{base}.{alias.name}"
			bound_in_base = base_pm is not None and alias.name in base_pm.symbols
			if sub in self._parsed and not bound_in_base:
				start = self._alias_start(pm, alias)
				out.append(
					Directive(
						form=DirectiveForm.SUBMODULE,
						target=sub,
						alias=alias.asname,
						names=(alias.name,),
						uri_start=start,
						uri_end=start + len(alias.name),
						**common,
					)
				)
			else:
				members.append(alias.name)
		if members:
			out.append(
				Directive(
					form=DirectiveForm.MEMBERS,
					target=base,
					alias=None,
					names=tuple(members),
					uri_start=uri_start,
					uri_end=uri_end,
					**common,
				)
			)
		return out


def _constructor_decl(pm: ParsedModule, owner: TypeDecl, node: ast.FunctionDef) -> ConstructorDecl:
	shape = param_shape(node.args, drop_receiver=True)
	params: List[str] = [*shape.positional, *shape.keyword_only]
	if shape.var_positional:
		params.append("*" + (node.args.vararg.arg if node.args.vararg else ""))
	if shape.var_keyword:
		params.append("**" + (node.args.kwarg.arg if node.args.kwarg else ""))
	body = list(node.body)
	if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant) and isinstance(body[0].value.value, str):
		body = body[1:]
	super_args: Optional[Tuple[ConstExpr, ...]] = None
	super_keywords = 0
	if body and _is_super_init(body[0]):
		call = body[0].value  # type: ignore[attr-defined]
		super_args = tuple(pm.expr(a) for a in call.args)
		super_keywords = len(call.keywords)
	return ConstructorDecl(
		owner=owner,
		params=tuple(params),
		initializer_count=len(body),
		super_args=super_args,
		super_keyword_count=super_keywords,
		span=pm.span(node),
	)


def _is_super_init(stmt: ast.stmt) -> bool:
	if not isinstance(stmt, ast.Expr) or not isinstance(stmt.value, ast.Call):
		return False
	func = stmt.value.func
	if not isinstance(func, ast.Attribute) or func.attr != "__init__":
		return False
	inner = func.value
	return isinstance(inner, ast.Call) and isinstance(inner.func, ast.Name) and inner.func.id == "super"


__all__ = ["ModuleSource", "ParsedModule", "PythonProgramModel", "resolve_relative", "member_kind", "param_shape"]
