# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
End-to-end checks: transform a program, write it out, import it and reflect.
"""

from __future__ import annotations

from typing import Dict, Mapping

import pytest

from staticmirror.runtime.errors import (
	CapabilityNotImplementedError,
	NoSuchCapabilityError,
	NoSuchInvokeCapabilityError,
	ReflectableNoSuchMethodError,
	UnexpectedReflecteeError,
)
from staticmirror.tests.support.programs import reflector_module, run_transform


def _transform(sources: Mapping[str, str], entry: str) -> Dict[str, str]:
	result = run_transform(sources, [entry])
	assert result.ok, [d.format_human() for d in result.diagnostics]
	return result.outputs


def _program(prefix: str, capabilities: str, classes: str) -> Dict[str, str]:
	return {
		f"{prefix}_refl": reflector_module(capabilities),
		f"{prefix}_main": f"from {prefix}_refl import reflector\n\n\n" + classes,
	}


BASIC_CLASSES = """\
@reflector
class A:
	def arg0(self):
		return "arg0"

	def arg1(self, x):
		return x

	def explode(self):
		raise ValueError("boom")

	def scaled(self, value, *, factor=2):
		return value * factor


class Unrelated:
	pass


class SubA(A):
	pass
"""


def test_single_member_capability(import_outputs) -> None:
	sources = _program("e2e_single", 'c.InvokeInstanceMemberCapability("arg0")', BASIC_CLASSES)
	main = import_outputs(_transform(sources, "e2e_single_main"), "e2e_single_main")
	mirror = main.reflector.reflect(main.A())
	assert mirror.invoke("arg0", []) == "arg0"
	with pytest.raises(NoSuchInvokeCapabilityError):
		mirror.invoke("arg1", [1])
	with pytest.raises(NoSuchInvokeCapabilityError):
		mirror.invoke("doesNotExist", [])


def test_blanket_capability(import_outputs) -> None:
	sources = _program("e2e_blanket", "c.instance_invoke_capability", BASIC_CLASSES)
	main = import_outputs(_transform(sources, "e2e_blanket_main"), "e2e_blanket_main")
	mirror = main.reflector.reflect(main.A())
	assert mirror.invoke("arg1", [7]) == 7
	assert mirror.invoke("arg1", [], {"x": 3}) == 3
	assert mirror.invoke("scaled", [2], {"factor": 5}) == 10
	with pytest.raises(ReflectableNoSuchMethodError):
		mirror.invoke("doesNotExist", [])
	with pytest.raises(ReflectableNoSuchMethodError):
		mirror.invoke("arg0", [1])
	with pytest.raises(ReflectableNoSuchMethodError):
		mirror.invoke("scaled", [2], {"unknown": 1})
	with pytest.raises(ValueError, match="boom"):
		mirror.invoke("explode", [])


def test_reflect_requires_an_exact_covered_type(import_outputs) -> None:
	sources = _program("e2e_exact", "c.instance_invoke_capability", BASIC_CLASSES)
	main = import_outputs(_transform(sources, "e2e_exact_main"), "e2e_exact_main")
	with pytest.raises(UnexpectedReflecteeError):
		main.reflector.reflect(main.Unrelated())
	with pytest.raises(UnexpectedReflecteeError):
		main.reflector.reflect(main.SubA())
	with pytest.raises(UnexpectedReflecteeError):
		main.reflector.reflect(42)


def test_inherited_members_are_invokable(import_outputs) -> None:
	classes = """\
class Base:
	def greet(self, name):
		return f"hello {name}"

	def shadowed(self):
		return "base"


@reflector
class Child(Base):
	def shadowed(self):
		return "child"
"""
	sources = _program("e2e_inherit", "c.instance_invoke_capability", classes)
	main = import_outputs(_transform(sources, "e2e_inherit_main"), "e2e_inherit_main")
	mirror = main.reflector.reflect(main.Child())
	assert mirror.invoke("greet", ["x"]) == "hello x"
	assert mirror.invoke("shadowed", []) == "child"


def test_static_invoke_through_type(import_outputs) -> None:
	classes = """\
@reflector
class Factory:
	@staticmethod
	def make(n):
		return [n] * n

	@classmethod
	def label(cls):
		return cls.__name__

	def instance_only(self):
		return 0
"""
	sources = _program("e2e_static", "c.static_invoke_capability, c.type_capability", classes)
	main = import_outputs(_transform(sources, "e2e_static_main"), "e2e_static_main")
	mirror = main.reflector.reflect(main.Factory())
	cls_mirror = mirror.type
	assert cls_mirror.simple_name == "Factory"
	assert cls_mirror.qualified_name == "e2e_static_main.Factory"
	assert cls_mirror.invoke("make", [2]) == [2, 2]
	assert cls_mirror.invoke("label", []) == "Factory"
	with pytest.raises(ReflectableNoSuchMethodError):
		cls_mirror.invoke("make", [])
	with pytest.raises(NoSuchInvokeCapabilityError):
		mirror.invoke("instance_only", [])
	with pytest.raises(NoSuchCapabilityError):
		cls_mirror.metadata


def test_type_not_requested(import_outputs) -> None:
	sources = _program("e2e_notype", "c.instance_invoke_capability", BASIC_CLASSES)
	main = import_outputs(_transform(sources, "e2e_notype_main"), "e2e_notype_main")
	with pytest.raises(NoSuchCapabilityError):
		main.reflector.reflect(main.A()).type


def test_classes_spread_over_a_package(import_outputs) -> None:
	sources = {
		"e2e_pkg": "",
		"e2e_pkg.refl": reflector_module("c.InvokeInstanceMemberCapability('area')"),
		"e2e_pkg.shapes": (
			"from e2e_pkg.refl import reflector\n\n\n"
			"@reflector\nclass Square:\n\tdef __init__(self, side):\n\t\tself.side = side\n\n"
			"\tdef area(self):\n\t\treturn self.side ** 2\n"
		),
		"e2e_pkg.main": (
			"from e2e_pkg.refl import reflector\nfrom e2e_pkg.shapes import Square\n\n\n"
			"def run(side):\n\treturn reflector.reflect(Square(side)).invoke('area', [])\n"
		),
	}
	outputs = _transform(sources, "e2e_pkg.main")
	assert "e2e_pkg" in outputs
	main = import_outputs(outputs, "e2e_pkg.main", packages=("e2e_pkg",))
	assert main.run(3) == 9


def test_granted_metadata_is_unimplemented_not_denied(import_outputs) -> None:
	sources = _program("e2e_meta", "c.metadata_capability, c.type_capability", BASIC_CLASSES)
	main = import_outputs(_transform(sources, "e2e_meta_main"), "e2e_meta_main")
	cls_mirror = main.reflector.reflect(main.A()).type
	with pytest.raises(CapabilityNotImplementedError):
		cls_mirror.metadata
	with pytest.raises(NoSuchCapabilityError):
		cls_mirror.declarations
	with pytest.raises(NoSuchCapabilityError):
		cls_mirror.library
