# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Capability vocabulary.

Reflectors pass a list of these values to `Reflectable.__init__`. The
transformer recognizes them by class name and by this module's identity, so
user-written subclasses are never accepted as capabilities. The constants are
`Final` so the transformer can chase references to them.
"""

from __future__ import annotations

from typing import Final


class ReflectCapability:
	"""Base class of every capability value."""

	def __repr__(self) -> str:
		return f"{type(self).__name__}()"


class _InstanceInvokeCapability(ReflectCapability):
	pass


class _InvokingCapability(ReflectCapability):
	pass


class _StaticInvokeCapability(ReflectCapability):
	pass


class _MetadataCapability(ReflectCapability):
	pass


class _DeclarationsCapability(ReflectCapability):
	pass


class _LibraryCapability(ReflectCapability):
	pass


class _TypeCapability(ReflectCapability):
	pass


class InvokeInstanceMemberCapability(ReflectCapability):
	"""Allows invoking the instance member `name`."""

	def __init__(self, name: str) -> None:
		self.name = name

	def __repr__(self) -> str:
		return f"InvokeInstanceMemberCapability({self.name!r})"


class InvokeStaticMemberCapability(ReflectCapability):
	"""Allows invoking the static or class member `name`."""

	def __init__(self, name: str) -> None:
		self.name = name

	def __repr__(self) -> str:
		return f"InvokeStaticMemberCapability({self.name!r})"


class InvokeMembersWithMetadataCapability(ReflectCapability):
	def __init__(self, metadata_type: type) -> None:
		self.metadata_type = metadata_type


class InvokeInstanceMembersUpToSuperCapability(ReflectCapability):
	def __init__(self, super_type: type) -> None:
		self.super_type = super_type


class NewInstanceCapability(ReflectCapability):
	pass


class SubtypeQuantifyCapability(ReflectCapability):
	pass


class SuperclassQuantifyCapability(ReflectCapability):
	pass


class TypeRelationsCapability(ReflectCapability):
	pass


instance_invoke_capability: Final = _InstanceInvokeCapability()
invoking_capability: Final = _InvokingCapability()
static_invoke_capability: Final = _StaticInvokeCapability()
metadata_capability: Final = _MetadataCapability()
declarations_capability: Final = _DeclarationsCapability()
library_capability: Final = _LibraryCapability()
type_capability: Final = _TypeCapability()
new_instance_capability: Final = NewInstanceCapability()
subtype_quantify_capability: Final = SubtypeQuantifyCapability()
superclass_quantify_capability: Final = SuperclassQuantifyCapability()
type_relations_capability: Final = TypeRelationsCapability()
