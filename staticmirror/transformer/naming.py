# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Per-unit transformation session.

Generated names must be identical across runs over identical input, so all
naming state lives in a `TransformSession` created fresh for each closed-world
unit and dropped afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from staticmirror.core.diagnostics import Diagnostic
from staticmirror.transformer.options import TransformOptions

CLASS_MIRROR_ROLE = "ClassMirror"
INSTANCE_MIRROR_ROLE = "InstanceMirror"
MIRRORS_ALIAS = "_reflectable_mirrors"
IMPORT_ALIAS_PREFIX = "_reflectable_import_"


@dataclass
class TransformSession:
	options: TransformOptions
	diagnostics: List[Diagnostic] = field(default_factory=list)
	# (reflector, class) -> prefix; stable for the session.
	_prefixes: Dict[Tuple[str, str], str] = field(default_factory=dict)
	# Prefixed class names already handed out, per module.
	_taken: Dict[str, Set[str]] = field(default_factory=dict)
	_counter: int = 0

	def next_id(self) -> int:
		value = self._counter
		self._counter += 1
		return value

	def prefix_for(self, reflector: str, module: str, class_name: str) -> str:
		"""
		Return the mirror-name prefix for `class_name` as covered by `reflector`.

		The first domain naming a class in a module gets the plain prefix; a
		second reflector covering the same class in the same module gets a
		counter-disambiguated one.
		"""
		key = (reflector, f"{module}.{class_name}")
		cached = self._prefixes.get(key)
		if cached is not None:
			return cached
		taken = self._taken.setdefault(module, set())
		base = self.options.name_prefix
		if self.options.salted_names:
			prefix = f"{base}{self.next_id()}"
		else:
			prefix = base
		while f"{prefix}_{class_name}" in taken:
			prefix = f"{base}{self.next_id()}"
		taken.add(f"{prefix}_{class_name}")
		self._prefixes[key] = prefix
		return prefix

	def mirror_name(self, prefix: str, class_name: str, role: str) -> str:
		return f"{prefix}_{class_name}_{role}"

	def import_alias(self) -> str:
		return f"{IMPORT_ALIAS_PREFIX}{self.next_id()}"


__all__ = [
	"CLASS_MIRROR_ROLE",
	"INSTANCE_MIRROR_ROLE",
	"MIRRORS_ALIAS",
	"IMPORT_ALIAS_PREFIX",
	"TransformSession",
]
