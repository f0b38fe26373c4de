# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Capability tokens and the capability set of a reflector.

Tokens are a closed vocabulary: `CapabilityKind` names the category and
`CapabilityToken` carries the optional payload (a member name or a bound
type). `CapabilitySet` is the single authority the generator asks whether an
operation is authorized.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Tuple

from staticmirror.transformer.errors import CapabilityNotSupportedError

UNIVERSAL_ROOT = "object"


class CapabilityKind(Enum):
	INSTANCE_INVOKE = "instance_invoke"
	INVOKE_MEMBERS = "invoke_members"
	INSTANCE_MEMBER_INVOKE = "instance_member_invoke"
	STATIC_INVOKE = "static_invoke"
	STATIC_MEMBER_INVOKE = "static_member_invoke"
	METADATA = "metadata"
	DECLARATIONS = "declarations"
	LIBRARY = "library"
	TYPE = "type"
	INVOKE_WITH_METADATA = "invoke_with_metadata"
	INSTANCE_INVOKE_UP_TO_SUPER = "instance_invoke_up_to_super"
	UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class CapabilityToken:
	"""
	One resolved capability.

	`name` is the member name for the name-scoped kinds and the vocabulary
	class name for UNSUPPORTED; `bound` is the qualified name of the bounding
	type for the bounded kinds (`object` for the universal root).
	"""

	kind: CapabilityKind
	name: Optional[str] = None
	bound: Optional[str] = None

	def describe(self) -> str:
		if self.name is not None:
			return f"{self.kind.value}({self.name})"
		if self.bound is not None:
			return f"{self.kind.value}({self.bound})"
		return self.kind.value


@dataclass(frozen=True)
class InvokeFilter:
	"""
	Run-time summary of an invoke predicate.

	`grants_all` is true when every member name is authorized; otherwise only
	the names in `names` are.
	"""

	grants_all: bool
	names: FrozenSet[str] = frozenset()

	def grants(self, name: str) -> bool:
		return self.grants_all or name in self.names


class CapabilitySet:
	"""Ordered capability tokens of one reflector; order carries no meaning."""

	def __init__(self, tokens: Iterable[CapabilityToken]) -> None:
		self.tokens: Tuple[CapabilityToken, ...] = tuple(tokens)

	def __iter__(self):
		return iter(self.tokens)

	def __len__(self) -> int:
		return len(self.tokens)

	def __repr__(self) -> str:
		return f"CapabilitySet([{', '.join(t.describe() for t in self.tokens)}])"

	def _has(self, kind: CapabilityKind) -> bool:
		return any(t.kind is kind for t in self.tokens)

	def _check_instance_refinements(self) -> None:
		for token in self.tokens:
			if token.kind is CapabilityKind.INVOKE_WITH_METADATA:
				raise CapabilityNotSupportedError(f"{token.describe()} is not yet supported")
			if token.kind is CapabilityKind.INSTANCE_INVOKE_UP_TO_SUPER and token.bound != UNIVERSAL_ROOT:
				raise CapabilityNotSupportedError(f"{token.describe()} is not yet supported")
			if token.kind is CapabilityKind.UNSUPPORTED:
				raise CapabilityNotSupportedError(f"{token.name} is not yet supported")

	def supports_instance_invoke(self, name: str) -> bool:
		"""
		Return True if instance member `name` may be invoked.

		Raises CapabilityNotSupportedError when the set holds a recognized kind
		whose instance-invoke semantics are not implemented, instead of
		answering False for it.
		"""
		self._check_instance_refinements()
		for token in self.tokens:
			if token.kind in (CapabilityKind.INSTANCE_INVOKE, CapabilityKind.INVOKE_MEMBERS):
				return True
			if token.kind is CapabilityKind.INSTANCE_INVOKE_UP_TO_SUPER and token.bound == UNIVERSAL_ROOT:
				return True
			if token.kind is CapabilityKind.INSTANCE_MEMBER_INVOKE and token.name == name:
				return True
		return False

	def supports_static_invoke(self, name: str) -> bool:
		for token in self.tokens:
			if token.kind in (CapabilityKind.STATIC_INVOKE, CapabilityKind.INVOKE_MEMBERS):
				return True
			if token.kind is CapabilityKind.STATIC_MEMBER_INVOKE and token.name == name:
				return True
		return False

	def supports_metadata(self) -> bool:
		return self._has(CapabilityKind.METADATA)

	def supports_declarations(self) -> bool:
		return self._has(CapabilityKind.DECLARATIONS)

	def supports_library(self) -> bool:
		return self._has(CapabilityKind.LIBRARY)

	def supports_type(self) -> bool:
		return self._has(CapabilityKind.TYPE)

	def instance_invoke_filter(self) -> InvokeFilter:
		self._check_instance_refinements()
		grants_all = any(
			t.kind in (CapabilityKind.INSTANCE_INVOKE, CapabilityKind.INVOKE_MEMBERS)
			or (t.kind is CapabilityKind.INSTANCE_INVOKE_UP_TO_SUPER and t.bound == UNIVERSAL_ROOT)
			for t in self.tokens
		)
		if grants_all:
			return InvokeFilter(grants_all=True)
		names = frozenset(
			t.name for t in self.tokens if t.kind is CapabilityKind.INSTANCE_MEMBER_INVOKE and t.name is not None
		)
		return InvokeFilter(grants_all=False, names=names)

	def static_invoke_filter(self) -> InvokeFilter:
		if self._has(CapabilityKind.STATIC_INVOKE) or self._has(CapabilityKind.INVOKE_MEMBERS):
			return InvokeFilter(grants_all=True)
		names = frozenset(
			t.name for t in self.tokens if t.kind is CapabilityKind.STATIC_MEMBER_INVOKE and t.name is not None
		)
		return InvokeFilter(grants_all=False, names=names)


__all__ = ["UNIVERSAL_ROOT", "CapabilityKind", "CapabilityToken", "InvokeFilter", "CapabilitySet"]
