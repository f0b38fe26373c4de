# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Module discovery and closed-world construction.

A `SourceSet` maps module names to sources (from module roots on disk or an
in-memory dict). `ProgramLoader` parses modules on demand, caches the parse,
and builds one `PythonProgramModel` per entry point out of the modules
reachable from it through imports. Modules that fail to parse are reported
once and left out of every unit.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from staticmirror.core.diagnostics import Diagnostic
from staticmirror.core.span import Span
from staticmirror.model.python_model import ModuleSource, ParsedModule, PythonProgramModel, resolve_relative

RUNTIME_PACKAGE = "staticmirror.runtime"


def _module_name_for(root: Path, path: Path) -> Optional[str]:
	rel = path.relative_to(root).with_suffix("")
	parts = list(rel.parts)
	if parts and parts[-1] == "__init__":
		parts = parts[:-1]
	if not parts or not all(p.isidentifier() for p in parts):
		return None
	return ".".join(parts)


class SourceSet:
	"""Name → `ModuleSource` mapping for every module the loader may see."""

	def __init__(self, modules: Iterable[ModuleSource] = ()) -> None:
		self._modules: Dict[str, ModuleSource] = {}
		for mod in modules:
			self.add(mod)

	def add(self, mod: ModuleSource) -> None:
		self._modules.setdefault(mod.name, mod)

	def get(self, name: str) -> Optional[ModuleSource]:
		return self._modules.get(name)

	def names(self) -> List[str]:
		return sorted(self._modules)

	def __contains__(self, name: object) -> bool:
		return name in self._modules

	def __len__(self) -> int:
		return len(self._modules)

	@classmethod
	def from_mapping(cls, sources: Mapping[str, str], *, packages: Iterable[str] = ()) -> "SourceSet":
		"""
		Build a source set from `{module name: source}`.

		Names listed in `packages` (or any name that prefixes another entry) are
		marked as packages so relative imports resolve as they would for
		`__init__.py` files.
		"""
		pkg_names = set(packages)
		for name in sources:
			parts = name.split(".")
			for i in range(1, len(parts)):
				pkg_names.add(".".join(parts[:i]))
		return cls(
			ModuleSource(name=name, source=text, file=f"<{name}>", is_package=name in pkg_names)
			for name, text in sources.items()
		)

	@classmethod
	def from_roots(cls, roots: Sequence[Path]) -> "SourceSet":
		out = cls()
		for root in roots:
			root = Path(root)
			for path in sorted(root.rglob("*.py")):
				if "__pycache__" in path.parts:
					continue
				name = _module_name_for(root, path)
				if name is None:
					continue
				out.add(
					ModuleSource(
						name=name,
						source=path.read_text(encoding="utf-8"),
						file=str(path),
						is_package=path.name == "__init__.py",
					)
				)
		return out

	def merged(self, other: "SourceSet") -> "SourceSet":
		out = SourceSet(self._modules.values())
		for name in other.names():
			mod = other.get(name)
			if mod is not None:
				out.add(mod)
		return out


def runtime_sources() -> SourceSet:
	"""Sources of the host runtime package (marker, capabilities, mirror bases)."""
	pkg_dir = Path(__file__).resolve().parents[1]
	root = pkg_dir.parent
	mods: List[ModuleSource] = []
	init = pkg_dir / "__init__.py"
	mods.append(ModuleSource(name="staticmirror", source=init.read_text(encoding="utf-8"), file=str(init), is_package=True))
	for path in sorted((pkg_dir / "runtime").glob("*.py")):
		name = _module_name_for(root, path)
		if name is None:
			continue
		mods.append(
			ModuleSource(
				name=name,
				source=path.read_text(encoding="utf-8"),
				file=str(path),
				is_package=path.name == "__init__.py",
			)
		)
	return SourceSet(mods)


def _import_candidates(pm: ParsedModule) -> List[str]:
	out: List[str] = []
	for node in ast.walk(pm.tree):
		if isinstance(node, ast.Import):
			for alias in node.names:
				parts = alias.name.split(".")
				out.extend(".".join(parts[: i + 1]) for i in range(len(parts)))
		elif isinstance(node, ast.ImportFrom):
			base = resolve_relative(pm.name, pm.is_package, node.module, node.level)
			if base is None:
				continue
			parts = base.split(".")
			out.extend(".".join(parts[: i + 1]) for i in range(len(parts)))
			for alias in node.names:
				if alias.name != "*":
					out.append(f"{base}.{alias.name}")
	return out


class ProgramLoader:
	"""Parses modules from a `SourceSet` and builds per-entry-point models."""

	def __init__(self, sources: SourceSet, *, diagnostics: Optional[List[Diagnostic]] = None) -> None:
		self.sources = sources
		self.diagnostics: List[Diagnostic] = diagnostics if diagnostics is not None else []
		self._parsed: Dict[str, Optional[ParsedModule]] = {}

	def parsed(self, name: str) -> Optional[ParsedModule]:
		if name in self._parsed:
			return self._parsed[name]
		src = self.sources.get(name)
		result: Optional[ParsedModule] = None
		if src is not None:
			try:
				result = ParsedModule.parse(src)
			except SyntaxError as err:
				self.diagnostics.append(
					Diagnostic(
						message=f"cannot parse module '{name}': {err.msg}",
						code="load-syntax",
						phase="load",
						span=Span(file=src.file, line=err.lineno, column=err.offset),
					)
				)
		self._parsed[name] = result
		return result

	def reachable(self, entry_point: str) -> List[str]:
		"""Names of all loadable modules reachable from `entry_point`, sorted."""
		seen: Set[str] = set()
		queue = [entry_point]
		while queue:
			name = queue.pop()
			if name in seen:
				continue
			seen.add(name)
			pm = self.parsed(name)
			if pm is None:
				continue
			for cand in _import_candidates(pm):
				if cand not in seen and cand in self.sources:
					queue.append(cand)
		return sorted(n for n in seen if self.parsed(n) is not None)

	def model_for(self, entry_point: str) -> Optional[PythonProgramModel]:
		"""Return the closed-world model for `entry_point`, or None if it is unknown."""
		if entry_point not in self.sources:
			return None
		names = self.reachable(entry_point)
		if entry_point not in names:
			return None
		return PythonProgramModel(pm for pm in (self.parsed(n) for n in names) if pm is not None)


def load_program(entry_point: str, sources: Mapping[str, str], *, with_runtime: bool = True) -> Optional[PythonProgramModel]:
	"""Convenience: build the model for one entry point from in-memory sources."""
	source_set = SourceSet.from_mapping(sources)
	if with_runtime:
		source_set = source_set.merged(runtime_sources())
	return ProgramLoader(source_set).model_for(entry_point)


__all__ = ["RUNTIME_PACKAGE", "SourceSet", "ProgramLoader", "runtime_sources", "load_program"]
