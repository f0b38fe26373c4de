# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from staticmirror.model import (
	ConstantDecl,
	DirectiveForm,
	IdentRef,
	Instantiation,
	Literal,
	MemberKind,
	ModuleDecl,
	QualifiedRef,
	TypeDecl,
)
from staticmirror.tests.support.programs import build_model

LIB = """\
from typing import Final

LIMIT: Final = 3
counter = 0
twice: Final = 1
twice = 2


class Base:
	NAME: Final = "base"

	def hello(self, who, /, greeting="hi", *rest, loud, mark="!", **extra):
		return greeting

	def __add__(self, other):
		return self

	def __secret(self):
		return 1

	@staticmethod
	def make(a, b=1):
		return Base()

	@classmethod
	def build(cls, x):
		return cls()

	@property
	def size(self):
		return 1


class Left(Base):
	def hello(self):
		return "left"


class Right(Base):
	pass


class Diamond(Left, Right):
	pass
"""


def _model(extra: dict[str, str] | None = None):
	sources = {"pkg.lib": LIB, "pkg.main": "from pkg.lib import *\nfrom pkg import lib as L\nimport pkg.lib\n"}
	sources.update(extra or {})
	return build_model(sources, "pkg.main")


def test_modules_are_sorted_and_closed_under_imports() -> None:
	model = _model({"pkg.unused": "X = 1\n"})
	names = [m.name for m in model.modules()]
	assert names == sorted(names)
	assert "pkg.lib" in names and "pkg.main" in names
	assert "pkg.unused" not in names


def test_final_constants_must_be_bound_once() -> None:
	model = _model()
	limit = model.resolve_constant(IdentRef(name="LIMIT", module="pkg.lib"))
	assert isinstance(limit, ConstantDecl) and limit.is_const
	assert limit.initializer == Literal(value=3, module="pkg.lib")
	counter = model.resolve_constant(IdentRef(name="counter", module="pkg.lib"))
	assert counter is not None and not counter.is_const
	twice = model.resolve_constant(IdentRef(name="twice", module="pkg.lib"))
	assert twice is not None and not twice.is_const


def test_resolution_through_star_alias_and_dotted_imports() -> None:
	model = _model()
	base = TypeDecl(module="pkg.lib", name="Base")
	assert model.resolve_reference(IdentRef(name="Base", module="pkg.main")) == base
	assert model.resolve_reference(QualifiedRef(qualifier=("L",), name="Base", module="pkg.main")) == base
	assert model.resolve_reference(QualifiedRef(qualifier=("pkg", "lib"), name="Base", module="pkg.main")) == base
	assert model.resolve_reference(QualifiedRef(qualifier=("pkg",), name="lib", module="pkg.main")) == ModuleDecl("pkg.lib")
	name = model.resolve_constant(QualifiedRef(qualifier=("L", "Base"), name="NAME", module="pkg.main"))
	assert name is not None and name.owner == "Base" and name.is_const
	assert model.resolve_reference(IdentRef(name="Missing", module="pkg.main")) is None


def test_method_kinds_and_param_shapes() -> None:
	model = _model()
	methods = {m.name: m for m in model.methods_of(TypeDecl(module="pkg.lib", name="Base"))}
	assert methods["hello"].kind is MemberKind.INSTANCE
	assert methods["__add__"].kind is MemberKind.OPERATOR and methods["__add__"].is_operator
	assert methods["__secret"].kind is MemberKind.MANGLED
	assert methods["make"].kind is MemberKind.STATIC
	assert methods["build"].kind is MemberKind.CLASS
	assert methods["size"].kind is MemberKind.PROPERTY
	hello = methods["hello"].params
	assert hello.positional == ("who", "greeting")
	assert hello.positional_only == 1
	assert hello.required_positional == 1
	assert hello.keyword_only == ("loud", "mark")
	assert hello.required_keyword_only == ("loud",)
	assert hello.var_positional and hello.var_keyword
	assert methods["make"].params.positional == ("a", "b")
	assert methods["build"].params.positional == ("x",)


def test_supertypes_are_linearized() -> None:
	model = _model()
	diamond = TypeDecl(module="pkg.lib", name="Diamond")
	assert [t.name for t in model.all_supertypes(diamond)] == ["Left", "Right", "Base"]
	assert [t.name for t in model.direct_supertypes(diamond)] == ["Left", "Right"]
	assert model.direct_supertypes(TypeDecl(module="pkg.lib", name="Base")) == []
	assert model.is_same_declaration(diamond, TypeDecl(module="pkg.lib", name="Diamond"))
	assert not model.is_same_declaration(diamond, None)


def test_decorators_become_const_exprs() -> None:
	model = build_model(
		{
			"app": "import deco\nfrom deco import mark\n\n@deco.Tag(1, key='k')\n@mark\n@(lambda c: c)\nclass A:\n\tpass\n",
			"deco": "class Tag:\n\tdef __init__(self, *a, **k):\n\t\tpass\n\ndef mark(c):\n\treturn c\n",
		},
		"app",
	)
	anns = model.annotations_of(TypeDecl(module="app", name="A"))
	assert isinstance(anns[0], Instantiation)
	assert model.resolve_reference(anns[0].callee) == TypeDecl(module="deco", name="Tag")
	assert anns[0].args == (Literal(value=1, module="app"),)
	assert anns[0].kwargs == (("key", Literal(value="k", module="app")),)
	assert isinstance(anns[1], IdentRef)
	assert type(anns[2]).__name__ == "Opaque"


def test_constructor_shape() -> None:
	model = build_model(
		{
			"m": (
				"class R:\n"
				"\tdef __init__(self):\n"
				"\t\t'''Doc.'''\n"
				"\t\tsuper().__init__([1, 2], flag=True)\n"
				"\n"
				"class S:\n"
				"\tdef __init__(self, x):\n"
				"\t\tself.x = x\n"
			)
		},
		"m",
	)
	(r_init,) = model.constructors_of(TypeDecl(module="m", name="R"))
	assert r_init.is_default
	assert r_init.initializer_count == 1
	assert r_init.super_args is not None and len(r_init.super_args) == 1
	assert r_init.super_keyword_count == 1
	(s_init,) = model.constructors_of(TypeDecl(module="m", name="S"))
	assert not s_init.is_default and s_init.super_args is None


def test_directive_forms_and_offsets() -> None:
	main = (
		"import pkg.lib as a\n"
		"import pkg.lib\n"
		"from pkg.lib import *\n"
		"from pkg.lib import Base, LIMIT\n"
		"from pkg import lib as b\n"
		"\n"
		"def later():\n"
		"    from . import lib\n"
	)
	model = build_model({"pkg.lib": LIB, "pkg.main": main}, "pkg.main")
	directives = [d for d in model.directives_of(ModuleDecl("pkg.main")) if d.target == "pkg.lib"]
	forms = [d.form for d in directives]
	assert forms == [
		DirectiveForm.MODULE_ALIAS,
		DirectiveForm.MODULE_PLAIN,
		DirectiveForm.STAR,
		DirectiveForm.MEMBERS,
		DirectiveForm.SUBMODULE,
		DirectiveForm.SUBMODULE,
	]
	for d in directives[:4]:
		assert main[d.uri_start : d.uri_end] == "pkg.lib"
	assert main[directives[4].uri_start : directives[4].uri_end] == "lib"
	assert directives[4].alias == "b"
	assert directives[3].names == ("Base", "LIMIT")
	assert all(d.top_level for d in directives[:5])
	nested = directives[5]
	assert not nested.top_level
	assert nested.indent == "    "
	assert main[nested.statement_start :].startswith("    from . import lib")


def test_class_body_info() -> None:
	source = "class A:\n    x = 1\n\n    def f(self):\n        return 1\nclass B: pass\n"
	model = build_model({"m": source}, "m")
	info = model.class_body_info(TypeDecl(module="m", name="A"))
	assert info.indent == "    "
	assert not info.inline_body
	assert source[info.insert_at :].startswith("class B")
	assert info.member_names == ("x", "f")
	assert model.class_body_info(TypeDecl(module="m", name="B")).inline_body
