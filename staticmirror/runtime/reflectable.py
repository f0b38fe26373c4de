# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reflection marker.

A reflector is a direct subclass of `Reflectable` whose `__init__` passes its
capability list to `super().__init__`. Instances are used as class decorators:

	class Reflector(Reflectable):
		def __init__(self):
			super().__init__([instance_invoke_capability])

	reflector: Final = Reflector()

	@reflector
	class A: ...

Untransformed programs can construct reflectors and decorate classes, but
`reflect` fails until the transformer has generated mirrors.
"""

from __future__ import annotations

from typing import Final, Sequence

from staticmirror.runtime.errors import ProgramNotTransformedError


class Reflectable:
	# Identifies this class independently of its name; the transformer checks it.
	THIS_CLASS_ID: Final = "d3a9910b05e462ab60771179f764471f24bf4de9"

	def __init__(self, capabilities: Sequence[object] = ()) -> None:
		self.capabilities = tuple(capabilities)

	def __call__(self, cls):
		return cls

	def reflect(self, reflectee):
		raise ProgramNotTransformedError(
			f"{type(self).__name__}.reflect requires a program transformed by staticmirror"
		)


__all__ = ["Reflectable"]
