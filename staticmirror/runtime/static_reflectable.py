# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reflection-runtime-free variant of the marker module.

Transformed programs import this module instead of `reflectable`. Reflectors
get a generated `reflect`; the inherited one only covers reflectors with no
annotated classes.
"""

from __future__ import annotations

from typing import Sequence

from staticmirror.runtime.errors import UnexpectedReflecteeError


class Reflectable:
	def __init__(self, capabilities: Sequence[object] = ()) -> None:
		self.capabilities = tuple(capabilities)

	def __call__(self, cls):
		return cls

	def reflect(self, reflectee):
		raise UnexpectedReflecteeError(reflectee)


__all__ = ["Reflectable"]
