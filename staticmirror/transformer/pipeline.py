# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Whole-program transformation over one or more entry points.

Each entry point defines one closed-world unit: the model factory returns the
model of everything reachable from it, the world is built, and every module of
the unit is rewritten. Units are independent; a module declaring a reflector
must belong to a single unit, since each unit generates different mirrors and
imports for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from staticmirror.core.diagnostics import Diagnostic, has_errors
from staticmirror.model.protocol import ProgramModel
from staticmirror.transformer import errors
from staticmirror.transformer.codegen import ModuleCodegen
from staticmirror.transformer.errors import ReflectorShapeError
from staticmirror.transformer.naming import TransformSession
from staticmirror.transformer.options import TransformOptions
from staticmirror.transformer.source_patch import SourcePatch
from staticmirror.transformer.world import build_world, declares_reflector

ModelFactory = Callable[[str], Optional[ProgramModel]]


@dataclass
class TransformResult:
	outputs: Dict[str, str] = field(default_factory=dict)
	patches: Dict[str, SourcePatch] = field(default_factory=dict)
	diagnostics: List[Diagnostic] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not has_errors(self.diagnostics)


def _note(code: str, template: str, severity: str = "warning", **values: object) -> Diagnostic:
	return Diagnostic(
		message=errors.apply_template(template, values),
		code=code,
		phase="pipeline",
		severity=severity,
	)


@dataclass
class _UnitOutput:
	patches: Dict[str, SourcePatch]
	reflector_modules: List[str]


class ProgramTransformer:
	"""Runs units in entry-point order and merges their outputs."""

	def __init__(self, model_factory: ModelFactory, options: TransformOptions) -> None:
		self.model_factory = model_factory
		self.options = options
		self.result = TransformResult()
		# module -> entry point that produced its kept output
		self._output_entry: Dict[str, str] = {}
		# reflector module -> entry point that transformed it
		self._reflector_entry: Dict[str, str] = {}

	def run(self, entry_points: Sequence[str]) -> TransformResult:
		if not entry_points:
			self.result.diagnostics.append(_note(errors.NOTHING_TO_TRANSFORM, errors.NOTHING_TO_TRANSFORM_MSG))
		for entry in entry_points:
			self._run_unit(entry)
		return self.result

	def _run_unit(self, entry: str) -> None:
		model = self.model_factory(entry)
		if model is None:
			self.result.diagnostics.append(_note(errors.MISSING_ENTRY_POINT, errors.MISSING_ENTRY_POINT_MSG, entry=entry))
			return
		session = TransformSession(self.options)
		try:
			unit = self._transform_unit(model, entry, session)
		except ReflectorShapeError as err:
			self.result.diagnostics.extend(session.diagnostics)
			self.result.diagnostics.append(
				Diagnostic(
					message=f"{entry}: {err}",
					code=errors.REFLECTOR_SHAPE,
					phase="internal",
				)
			)
			return
		self.result.diagnostics.extend(session.diagnostics)
		if unit is None:
			return
		for name in unit.reflector_modules:
			self._reflector_entry[name] = entry
		for name, patch in unit.patches.items():
			self._merge(entry, name, patch)

	def _transform_unit(self, model: ProgramModel, entry: str, session: TransformSession) -> Optional[_UnitOutput]:
		world = build_world(model, self.options, session.diagnostics)
		if world is None:
			session.diagnostics.append(
				_note(
					errors.MARKER_NOT_FOUND,
					errors.MARKER_NOT_FOUND_MSG,
					severity="note",
					entry=entry,
					marker=f"{self.options.marker_module}.{self.options.marker_name}",
				)
			)
			return None
		codegen = ModuleCodegen(model, world, session)
		unit = _UnitOutput(patches={}, reflector_modules=[])
		for module in model.modules():
			# Declaring a reflector pins the module to this unit, used or not.
			if not self.options.is_exempt(module.name) and declares_reflector(model, module, world.marker):
				previous = self._reflector_entry.get(module.name)
				if previous is not None:
					session.diagnostics.append(
						_note(
							errors.TRANSFORMED_TWICE,
							errors.TRANSFORMED_TWICE_MSG,
							severity="error",
							module=module.name,
							entry=entry,
							previous=previous,
						)
					)
					continue
				unit.reflector_modules.append(module.name)
			patch = codegen.transform_module(module)
			if patch is not None:
				unit.patches[module.name] = patch
		return unit

	def _merge(self, entry: str, name: str, patch: SourcePatch) -> None:
		output = patch.apply()
		previous = self._output_entry.get(name)
		if previous is None:
			self._output_entry[name] = entry
			self.result.outputs[name] = output
			self.result.patches[name] = patch
			return
		if self.result.outputs[name] != output:
			self.result.diagnostics.append(
				_note(errors.TRANSFORM_CONFLICT, errors.TRANSFORM_CONFLICT_MSG, module=name, entry=entry, previous=previous)
			)


def transform_program(
	model_factory: ModelFactory,
	entry_points: Sequence[str],
	options: Optional[TransformOptions] = None,
) -> TransformResult:
	"""
	Transform every unit named by `entry_points`.

	`model_factory(entry)` returns the closed-world model of one entry point,
	or None when the entry point is unknown (reported as a warning).
	"""
	return ProgramTransformer(model_factory, options or TransformOptions()).run(entry_points)


__all__ = ["ModelFactory", "TransformResult", "ProgramTransformer", "transform_program"]
