# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Helpers for tests that build programs from in-memory module sources.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional

from staticmirror.core.diagnostics import Diagnostic
from staticmirror.model.loader import ProgramLoader, SourceSet, load_program, runtime_sources
from staticmirror.model.python_model import PythonProgramModel
from staticmirror.transformer.options import TransformOptions
from staticmirror.transformer.pipeline import TransformResult, transform_program

REFLECTOR_HEADER = """\
from typing import Final

from staticmirror.runtime import reflectable as r
from staticmirror.runtime import capability as c
"""


def reflector_module(capabilities: str, *, name: str = "Reflector", constant: str = "reflector") -> str:
	"""Source of a module declaring one reflector class and its `Final` instance."""
	return (
		REFLECTOR_HEADER
		+ f"""

class {name}(r.Reflectable):
	def __init__(self):
		super().__init__([{capabilities}])


{constant}: Final = {name}()
"""
	)


def build_model(sources: Mapping[str, str], entry: str) -> PythonProgramModel:
	model = load_program(entry, sources)
	assert model is not None, f"entry point {entry} not loadable"
	return model


def run_transform(
	sources: Mapping[str, str],
	entries: Iterable[str],
	options: Optional[TransformOptions] = None,
) -> TransformResult:
	source_set = SourceSet.from_mapping(sources).merged(runtime_sources())
	loader = ProgramLoader(source_set)
	result = transform_program(loader.model_for, list(entries), options)
	result.diagnostics[:0] = loader.diagnostics
	return result


def codes(diagnostics: Iterable[Diagnostic]) -> list[str]:
	return [d.code for d in diagnostics if d.code]


def errors_only(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
	return [d for d in diagnostics if d.severity == "error"]


def package_flags(sources: Mapping[str, str]) -> Dict[str, bool]:
	"""Module name -> True when the name prefixes another module (a package)."""
	names = set(sources)
	return {n: any(o.startswith(n + ".") for o in names) for n in names}
