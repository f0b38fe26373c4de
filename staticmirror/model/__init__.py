# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Read-only Program Model over host modules.

`protocol` defines the queries the transformer relies on; `python_model` and
`loader` implement them for Python source trees.
"""

from .const_expr import ConstExpr, IdentRef, Instantiation, ListLiteral, Literal, Opaque, QualifiedRef
from .loader import ProgramLoader, SourceSet, load_program, runtime_sources
from .protocol import (
	ConstantDecl,
	ConstructorDecl,
	Directive,
	DirectiveForm,
	DirectiveKind,
	MemberKind,
	MethodDecl,
	ModuleDecl,
	ParamShape,
	ProgramModel,
	TypeDecl,
)
from .python_model import ModuleSource, PythonProgramModel

__all__ = [
	"ConstExpr",
	"IdentRef",
	"QualifiedRef",
	"Instantiation",
	"Literal",
	"ListLiteral",
	"Opaque",
	"ConstantDecl",
	"ConstructorDecl",
	"Directive",
	"DirectiveForm",
	"DirectiveKind",
	"MemberKind",
	"MethodDecl",
	"ModuleDecl",
	"ParamShape",
	"ProgramModel",
	"TypeDecl",
	"ModuleSource",
	"PythonProgramModel",
	"ProgramLoader",
	"SourceSet",
	"load_program",
	"runtime_sources",
]
