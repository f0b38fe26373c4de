# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Base classes extended by generated mirrors.

Every reflective operation defaults to "not supported"; generated subclasses
override only what their reflector's capabilities authorize. Invocation
failures come in two kinds that never overlap:

- denial (`NoSuchInvokeCapabilityError`): no capability covers the member;
- absence (`ReflectableNoSuchMethodError`): a capability covers the member,
  but the reflectee has no such member or cannot take the given arguments.

Read categories (metadata, declarations, library) are either not requested
(`NoSuchCapabilityError`) or granted but not implemented by these mirrors
(`CapabilityNotImplementedError`).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple

from staticmirror.runtime.errors import (
	CapabilityNotImplementedError,
	NoSuchCapabilityError,
	NoSuchInvokeCapabilityError,
	ReflectableNoSuchMethodError,
	UnexpectedReflecteeError,
)


@dataclass(frozen=True)
class CallShape:
	"""Parameters of a reflectable method, without its receiver."""

	positional: Tuple[str, ...] = ()
	positional_only: int = 0
	required_positional: int = 0
	keyword_only: Tuple[str, ...] = ()
	required_keyword_only: Tuple[str, ...] = ()
	var_positional: bool = False
	var_keyword: bool = False

	def accepts(self, positional_count: int, names: Iterable[str] = ()) -> bool:
		"""Return True if a call with these arguments binds like a native call would."""
		if positional_count > len(self.positional) and not self.var_positional:
			return False
		filled = set(self.positional[:positional_count])
		named = set(names)
		for name in named:
			if name in self.positional:
				index = self.positional.index(name)
				if index < self.positional_only:
					# Positional-only names passed by keyword can only land in **kwargs.
					if not self.var_keyword:
						return False
					continue
				if name in filled:
					return False
				continue
			if name in self.keyword_only:
				continue
			if not self.var_keyword:
				return False
		for index, name in enumerate(self.positional[: self.required_positional]):
			if index < positional_count:
				continue
			if index >= self.positional_only and name in named:
				continue
			return False
		return all(name in named for name in self.required_keyword_only)


class ClassMirrorUnimpl:
	"""Class-shape mirror with no capabilities."""

	simple_name: str = ""
	qualified_name: str = ""
	_grants_all_static_members: bool = False
	_granted_static_members: FrozenSet[str] = frozenset()
	_static_call_shapes: Mapping[str, CallShape] = {}
	# Read categories a capability grants but mirrors do not implement yet.
	_granted_unimplemented: FrozenSet[str] = frozenset()

	def _grants_static_member(self, member_name: str) -> bool:
		return self._grants_all_static_members or member_name in self._granted_static_members

	def _check_static_call(self, member_name: str, positional_arguments: Sequence[Any], named_arguments: Optional[Dict[str, Any]]) -> None:
		shape = self._static_call_shapes.get(member_name)
		if shape is not None and not shape.accepts(len(positional_arguments), named_arguments or {}):
			raise ReflectableNoSuchMethodError(self, member_name, positional_arguments, named_arguments)

	def invoke(self, member_name: str, positional_arguments: Sequence[Any], named_arguments: Optional[Dict[str, Any]] = None) -> Any:
		if self._grants_static_member(member_name):
			raise ReflectableNoSuchMethodError(self, member_name, positional_arguments, named_arguments)
		raise NoSuchInvokeCapabilityError(self, member_name, positional_arguments, named_arguments)

	def _unavailable(self, category: str) -> Exception:
		if category in self._granted_unimplemented:
			return CapabilityNotImplementedError(category, self.qualified_name)
		return NoSuchCapabilityError(f"{category} of {self.qualified_name} was not requested")

	@property
	def metadata(self):
		raise self._unavailable("metadata")

	@property
	def declarations(self):
		raise self._unavailable("declarations")

	@property
	def library(self):
		raise self._unavailable("library")

	def __repr__(self) -> str:
		return f"ClassMirror({self.qualified_name})"


class InstanceMirrorUnimpl:
	"""Instance mirror with no capabilities."""

	_grants_all_instance_members: bool = False
	_granted_instance_members: FrozenSet[str] = frozenset()
	_call_shapes: Mapping[str, CallShape] = {}

	def __init__(self, reflectee: Any) -> None:
		self.reflectee = reflectee

	@property
	def type(self) -> ClassMirrorUnimpl:
		raise NoSuchCapabilityError(f"type of {type(self.reflectee).__name__} was not requested")

	def _grants_instance_member(self, member_name: str) -> bool:
		return self._grants_all_instance_members or member_name in self._granted_instance_members

	def _check_call(self, member_name: str, positional_arguments: Sequence[Any], named_arguments: Optional[Dict[str, Any]]) -> None:
		shape = self._call_shapes.get(member_name)
		if shape is not None and not shape.accepts(len(positional_arguments), named_arguments or {}):
			raise ReflectableNoSuchMethodError(self.reflectee, member_name, positional_arguments, named_arguments)

	def _delegate_no_such_method(self, member_name: str, positional_arguments: Sequence[Any], named_arguments: Optional[Dict[str, Any]]) -> Any:
		"""
		Passthrough to native dynamic dispatch for granted members the class does
		not declare. Not implemented: it reports the member as absent.
		"""
		raise ReflectableNoSuchMethodError(self.reflectee, member_name, positional_arguments, named_arguments)

	def invoke(self, member_name: str, positional_arguments: Sequence[Any], named_arguments: Optional[Dict[str, Any]] = None) -> Any:
		if self._grants_instance_member(member_name):
			return self._delegate_no_such_method(member_name, positional_arguments, named_arguments)
		raise NoSuchInvokeCapabilityError(self.reflectee, member_name, positional_arguments, named_arguments)

	def __repr__(self) -> str:
		return f"InstanceMirror({self.reflectee!r})"


__all__ = ["CallShape", "ClassMirrorUnimpl", "InstanceMirrorUnimpl", "UnexpectedReflecteeError"]
