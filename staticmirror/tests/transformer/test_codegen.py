# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from staticmirror.model.protocol import ParamShape
from staticmirror.transformer import errors
from staticmirror.transformer.codegen import HEADER_COMMENT, REST_OF_CLASS, REST_OF_FILE, render_call_shape
from staticmirror.transformer.directives import MODIFIED_IMPORT_COMMENT
from staticmirror.transformer.options import TransformOptions
from staticmirror.tests.support.programs import codes, reflector_module, run_transform

SPACED_REFLECTOR = """\
from typing import Final

from staticmirror.runtime import reflectable as r
from staticmirror.runtime import capability as c


class Reflector(r.Reflectable):
    def __init__(self):
        super().__init__([c.InvokeInstanceMemberCapability("arg0")])


reflector: Final = Reflector()
"""

SHAPES = """\
from app.refl import reflector


@reflector
class A:
	def arg0(self):
		return 0

	def arg1(self, x):
		return x


@reflector
class B:
	def arg0(self, *, scale=1):
		return scale
"""


def _sources() -> dict[str, str]:
	return {"app.refl": SPACED_REFLECTOR, "app.shapes": SHAPES, "app.main": "import app.shapes\n"}


def test_generation_is_deterministic() -> None:
	first = run_transform(_sources(), ["app.main"])
	second = run_transform(_sources(), ["app.main"])
	assert first.ok, [d.format_human() for d in first.diagnostics]
	assert first.outputs == second.outputs
	assert sorted(first.outputs) == ["app.main", "app.refl", "app.shapes"]


def test_reflect_dispatches_on_exact_types() -> None:
	out = run_transform(_sources(), ["app.main"]).outputs["app.refl"]
	expected = (
		"        super().__init__([c.InvokeInstanceMemberCapability(\"arg0\")])\n"
		"\n"
		f"    {REST_OF_CLASS}\n"
		"    def reflect(self, reflectee):\n"
		"        if type(reflectee) is _reflectable_import_0.A:\n"
		"            return _reflectable_import_0.Static_A_InstanceMirror(reflectee)\n"
		"        if type(reflectee) is _reflectable_import_0.B:\n"
		"            return _reflectable_import_0.Static_B_InstanceMirror(reflectee)\n"
		"        raise _reflectable_mirrors.UnexpectedReflecteeError(reflectee)\n"
	)
	assert expected in out
	assert out.count("if type(reflectee) is") == 2
	assert out.endswith(
		f"{REST_OF_FILE}\n\n"
		"import staticmirror.runtime.mirrors_unimpl as _reflectable_mirrors\n"
		"import app.shapes as _reflectable_import_0\n"
	)


def test_instance_mirrors_embed_grants_and_call_shapes() -> None:
	out = run_transform(_sources(), ["app.main"]).outputs["app.shapes"]
	assert out.startswith(HEADER_COMMENT + "\n")
	assert "class Static_A_ClassMirror(_reflectable_mirrors.ClassMirrorUnimpl):\n\tsimple_name = 'A'\n\tqualified_name = 'app.shapes.A'\n" in out
	assert (
		"class Static_A_InstanceMirror(_reflectable_mirrors.InstanceMirrorUnimpl):\n"
		"\t_grants_all_instance_members = False\n"
		"\t_granted_instance_members = frozenset({'arg0'})\n"
		"\t_call_shapes = {\n"
		"\t\t'arg0': _reflectable_mirrors.CallShape(),\n"
		"\t}\n"
	) in out
	assert "'arg1'" not in out
	assert "\t\t'arg0': _reflectable_mirrors.CallShape(keyword_only=('scale',)),\n" in out
	assert (
		"\t\tif member_name == 'arg0':\n"
		"\t\t\tself._check_call(member_name, positional_arguments, named_arguments)\n"
		"\t\t\treturn self.reflectee.arg0(*positional_arguments, **named_arguments)\n"
		"\t\treturn super().invoke(member_name, positional_arguments, named_arguments)\n"
	) in out


def test_reflector_module_header_and_directive_rewrite() -> None:
	out = run_transform(_sources(), ["app.main"]).outputs["app.refl"]
	assert out.startswith(
		f"{HEADER_COMMENT}\n"
		"from typing import Final\n\n"
		f"{MODIFIED_IMPORT_COMMENT}\n"
		"from staticmirror.runtime import static_reflectable as r\n"
		"from staticmirror.runtime import capability as c\n"
	)


def test_same_class_under_two_reflectors_gets_distinct_prefixes() -> None:
	refl = reflector_module("c.instance_invoke_capability") + (
		"\n\nclass Second(r.Reflectable):\n\tdef __init__(self):\n\t\tsuper().__init__([c.instance_invoke_capability])\n\n\n"
		"second: Final = Second()\n"
	)
	sources = {
		"refl": refl,
		"main": "from refl import reflector, second\n\n@reflector\n@second\nclass A:\n\tdef go(self):\n\t\treturn 1\n",
	}
	out = run_transform(sources, ["main"]).outputs
	assert "class Static_A_InstanceMirror(" in out["main"]
	assert "class Static0_A_InstanceMirror(" in out["main"]
	# Prefix planning takes counter value 0, so the module alias gets 1.
	assert "return _reflectable_import_1.Static0_A_InstanceMirror(reflectee)" in out["refl"]


def test_salted_names_number_every_prefix() -> None:
	out = run_transform(_sources(), ["app.main"], TransformOptions(salted_names=True)).outputs["app.shapes"]
	assert "class Static0_A_ClassMirror(" in out
	assert "class Static1_B_ClassMirror(" in out


def test_reflector_and_classes_in_one_module_use_plain_names() -> None:
	src = reflector_module("c.instance_invoke_capability") + "\n\n@reflector\nclass A:\n\tpass\n"
	out = run_transform({"main": src}, ["main"]).outputs["main"]
	assert "\t\tif type(reflectee) is A:\n\t\t\treturn Static_A_InstanceMirror(reflectee)\n" in out
	assert "_reflectable_import_" not in out


def test_type_capability_adds_class_mirror_accessor() -> None:
	src = reflector_module("c.instance_invoke_capability, c.type_capability") + "\n\n@reflector\nclass A:\n\tpass\n"
	out = run_transform({"main": src}, ["main"]).outputs["main"]
	assert "\t@property\n\tdef type(self):\n\t\treturn Static_A_ClassMirror()\n" in out


def test_static_members_generate_class_mirror_invoke() -> None:
	src = reflector_module("c.InvokeStaticMemberCapability('make')") + (
		"\n\n@reflector\nclass A:\n\t@staticmethod\n\tdef make(n):\n\t\treturn n\n\n\t@staticmethod\n\tdef other():\n\t\treturn 0\n"
	)
	out = run_transform({"main": src}, ["main"]).outputs["main"]
	assert "\t_granted_static_members = frozenset({'make'})\n" in out
	assert "\t_static_call_shapes = {\n\t\t'make': _reflectable_mirrors.CallShape(positional=('n',), required_positional=1),\n\t}\n" in out
	assert "\t\t\treturn A.make(*positional_arguments, **named_arguments)\n" in out
	assert "A.other(" not in out


def test_header_goes_after_shebang_and_coding_lines() -> None:
	src = "#!/usr/bin/env python\n# -*- coding: utf-8 -*-\n" + reflector_module("c.instance_invoke_capability")
	out = run_transform({"main": src}, ["main"]).outputs["main"]
	assert out.startswith("#!/usr/bin/env python\n# -*- coding: utf-8 -*-\n" + HEADER_COMMENT + "\n")


def test_marker_import_forms() -> None:
	src = (
		"import staticmirror.runtime.reflectable as r1\n"
		"from staticmirror.runtime.reflectable import *\n"
		"from staticmirror.runtime import reflectable\n"
		"from staticmirror.runtime import reflectable as r2\n"
		"from staticmirror.runtime.reflectable import Reflectable\n"
		"import staticmirror.runtime.reflectable\n"
		"\n"
		"def f():\n"
		"    import staticmirror.runtime.reflectable as lazy\n"
		"    return lazy\n"
	)
	result = run_transform({"main": src}, ["main"])
	out = result.outputs["main"]
	assert out == (
		f"{HEADER_COMMENT}\n"
		f"{MODIFIED_IMPORT_COMMENT}\n"
		"import staticmirror.runtime.static_reflectable as r1\n"
		f"{MODIFIED_IMPORT_COMMENT}\n"
		"from staticmirror.runtime.static_reflectable import *\n"
		f"{MODIFIED_IMPORT_COMMENT}\n"
		"from staticmirror.runtime import static_reflectable as reflectable\n"
		f"{MODIFIED_IMPORT_COMMENT}\n"
		"from staticmirror.runtime import static_reflectable as r2\n"
		"from staticmirror.runtime.reflectable import Reflectable\n"
		"import staticmirror.runtime.reflectable\n"
		"\n"
		"def f():\n"
		"    import staticmirror.runtime.reflectable as lazy\n"
		"    return lazy\n"
	)
	assert codes(result.diagnostics) == [
		errors.LIBRARY_UNSUPPORTED_SHOW,
		errors.LIBRARY_UNSUPPORTED_PLAIN,
		errors.LIBRARY_UNSUPPORTED_DEFERRED,
	]


def test_render_call_shape_omits_defaults() -> None:
	assert render_call_shape(ParamShape()) == "_reflectable_mirrors.CallShape()"
	shape = ParamShape(positional=("x", "y"), required_positional=1, var_keyword=True)
	assert render_call_shape(shape) == (
		"_reflectable_mirrors.CallShape(positional=('x', 'y'), required_positional=1, var_keyword=True)"
	)


def test_granted_read_categories_are_listed_on_the_class_mirror() -> None:
	src = reflector_module("c.declarations_capability, c.metadata_capability") + "\n\n@reflector\nclass A:\n\tpass\n"
	out = run_transform({"main": src}, ["main"]).outputs["main"]
	assert (
		"\tqualified_name = 'main.A'\n"
		"\t_granted_unimplemented = frozenset({'declarations', 'metadata'})\n"
	) in out


def test_reflector_may_list_the_marker_after_other_bases() -> None:
	src = reflector_module("c.instance_invoke_capability").replace(
		"class Reflector(r.Reflectable):", "class Mixin:\n\tpass\n\n\nclass Reflector(Mixin, r.Reflectable):"
	) + "\n\n@reflector\nclass A:\n\tpass\n"
	result = run_transform({"main": src}, ["main"])
	assert result.ok, [d.format_human() for d in result.diagnostics]
	assert "\t\tif type(reflectee) is A:\n" in result.outputs["main"]
