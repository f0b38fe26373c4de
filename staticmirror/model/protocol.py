# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Program Model protocol: read-only queries over a closed world of modules.

The transformer depends only on this protocol. `PythonProgramModel` is the
shipped implementation; tests may substitute any object with the same
methods. Declarations are plain frozen records whose identity is their
(module, name) key, so they can be used as dictionary keys across queries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Protocol, Tuple, Union

from staticmirror.core.span import Span
from staticmirror.model.const_expr import ConstExpr, Reference


@dataclass(frozen=True)
class ModuleDecl:
	name: str
	file: Optional[str] = field(default=None, compare=False)
	is_package: bool = field(default=False, compare=False)


@dataclass(frozen=True)
class TypeDecl:
	"""A top-level class declaration."""

	module: str
	name: str
	span: Span = field(default_factory=Span, compare=False)

	@property
	def qualified_name(self) -> str:
		return f"{self.module}.{self.name}"


@dataclass(frozen=True)
class ConstantDecl:
	"""
	A module-level or class-level variable binding.

	`is_const` is true only for `Final`-annotated bindings that are assigned
	exactly once; only those may be chased by the constant resolver.
	"""

	module: str
	name: str
	owner: Optional[str]
	is_const: bool
	initializer: Optional[ConstExpr]
	span: Span = field(default_factory=Span, compare=False)

	@property
	def qualified_name(self) -> str:
		if self.owner:
			return f"{self.module}.{self.owner}.{self.name}"
		return f"{self.module}.{self.name}"


Declaration = Union[ModuleDecl, TypeDecl, ConstantDecl]


class MemberKind(Enum):
	INSTANCE = auto()
	STATIC = auto()
	CLASS = auto()
	PROPERTY = auto()
	OPERATOR = auto()
	MANGLED = auto()


@dataclass(frozen=True)
class ParamShape:
	"""Call shape of a method, excluding the implicit `self`/`cls` parameter."""

	positional: Tuple[str, ...] = ()
	positional_only: int = 0
	required_positional: int = 0
	keyword_only: Tuple[str, ...] = ()
	required_keyword_only: Tuple[str, ...] = ()
	var_positional: bool = False
	var_keyword: bool = False


@dataclass(frozen=True)
class MethodDecl:
	name: str
	kind: MemberKind
	params: ParamShape
	owner: TypeDecl
	span: Span = field(default_factory=Span, compare=False)

	@property
	def is_operator(self) -> bool:
		return self.kind is MemberKind.OPERATOR


@dataclass(frozen=True)
class ConstructorDecl:
	"""
	An `__init__` declaration.

	`super_args` holds the positional arguments of a leading
	`super().__init__(...)` statement, or None when the body does not start with
	one. `initializer_count` counts body statements (docstring excluded).
	"""

	owner: TypeDecl
	params: Tuple[str, ...]
	initializer_count: int
	super_args: Optional[Tuple[ConstExpr, ...]]
	super_keyword_count: int = 0
	span: Span = field(default_factory=Span, compare=False)

	@property
	def is_default(self) -> bool:
		return not self.params


class DirectiveKind(Enum):
	IMPORT = auto()
	EXPORT = auto()


class DirectiveForm(Enum):
	MODULE_ALIAS = auto()  # import M as p
	MODULE_PLAIN = auto()  # import M
	STAR = auto()  # from M import *
	MEMBERS = auto()  # from M import a, b
	SUBMODULE = auto()  # from pkg import m [as p]


@dataclass(frozen=True)
class Directive:
	"""
	One import/export directive of a module.

	`target` is the resolved absolute module name the directive refers to.
	`uri_start`/`uri_end` delimit the text naming that module (for SUBMODULE
	only the imported name), `statement_start` is the offset of the start of the
	line holding the statement. `top_level` is false for imports nested in
	function bodies or blocks (lazy loading).
	"""

	kind: DirectiveKind
	form: DirectiveForm
	target: str
	alias: Optional[str]
	names: Tuple[str, ...]
	top_level: bool
	uri_start: int
	uri_end: int
	statement_start: int
	indent: str = ""
	span: Span = field(default_factory=Span, compare=False)


class ProgramModel(Protocol):
	"""Read-only queries over one closed-world unit."""

	def modules(self) -> List[ModuleDecl]:
		"""Return all reachable modules in deterministic order."""
		...

	def module(self, name: str) -> Optional[ModuleDecl]:
		...

	def types_of(self, module: ModuleDecl) -> List[TypeDecl]:
		...

	def annotations_of(self, type_decl: TypeDecl) -> List[ConstExpr]:
		...

	def methods_of(self, type_decl: TypeDecl) -> List[MethodDecl]:
		...

	def constructors_of(self, type_decl: TypeDecl) -> List[ConstructorDecl]:
		...

	def direct_supertypes(self, type_decl: TypeDecl) -> List[TypeDecl]:
		"""Return the resolved base classes in declaration order."""
		...

	def all_supertypes(self, type_decl: TypeDecl) -> List[TypeDecl]:
		"""Return all resolved ancestors, most derived first."""
		...

	def is_same_declaration(self, a: Optional[Declaration], b: Optional[Declaration]) -> bool:
		...

	def resolve_reference(self, ref: Reference) -> Optional[Declaration]:
		...

	def resolve_constant(self, ref: Reference) -> Optional[ConstantDecl]:
		...

	def static_field(self, type_decl: TypeDecl, name: str) -> Optional[ConstantDecl]:
		...

	def module_of(self, type_decl: TypeDecl) -> ModuleDecl:
		...

	def directives_of(self, module: ModuleDecl) -> List[Directive]:
		...

	def import_reference(self, target: ModuleDecl, from_module: ModuleDecl) -> str:
		"""Return the text `from_module` uses to import `target`."""
		...

	def source_of(self, module: ModuleDecl) -> str:
		...

	def class_body_info(self, type_decl: TypeDecl) -> "ClassBodyInfo":
		...


@dataclass(frozen=True)
class ClassBodyInfo:
	"""
	Layout facts the generator needs to insert members into a class body.

	`insert_at` is the offset just past the last line of the class, `indent` is
	the indentation of the body statements, and `inline_body` is true for
	`class C: pass` style bodies that share the header line.
	"""

	insert_at: int
	indent: str
	inline_body: bool
	member_names: Tuple[str, ...] = ()


__all__ = [
	"ModuleDecl",
	"TypeDecl",
	"ConstantDecl",
	"Declaration",
	"MemberKind",
	"ParamShape",
	"MethodDecl",
	"ConstructorDecl",
	"DirectiveKind",
	"DirectiveForm",
	"Directive",
	"ProgramModel",
	"ClassBodyInfo",
]
