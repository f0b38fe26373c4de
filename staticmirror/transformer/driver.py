# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver.

Loads modules from module roots, transforms every unit named on the command
line and writes the rewritten modules under `--out-dir`. Without `--out-dir`
nothing is written (the transformed module names are still reported).

Exit codes: 0 on success, 1 if any error diagnostic was produced, 2 on an
invalid configuration.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List

from staticmirror.core.diagnostics import Diagnostic, has_errors
from staticmirror.model.loader import ProgramLoader, SourceSet, runtime_sources
from staticmirror.transformer.errors import TransformerConfigError
from staticmirror.transformer.options import TransformOptions, load_options
from staticmirror.transformer.pipeline import transform_program


def output_path(out_dir: Path, module_name: str, is_package: bool) -> Path:
	parts = module_name.split(".")
	if is_package:
		return out_dir.joinpath(*parts, "__init__.py")
	return out_dir.joinpath(*parts[:-1], parts[-1] + ".py")


def _write_outputs(out_dir: Path, outputs: Dict[str, str], sources: SourceSet) -> None:
	for name in sorted(outputs):
		src = sources.get(name)
		path = output_path(out_dir, name, bool(src and src.is_package))
		path.parent.mkdir(parents=True, exist_ok=True)
		path.write_text(outputs[name], encoding="utf-8")


def _report(diagnostics: List[Diagnostic], outputs: List[str], exit_code: int, as_json: bool) -> None:
	if as_json:
		payload = {
			"exit_code": exit_code,
			"diagnostics": [d.to_dict() for d in diagnostics],
			"outputs": outputs,
		}
		print(json.dumps(payload))
		return
	for d in diagnostics:
		print(d.format_human(), file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
	"""
	Transform the programs rooted at the given entry modules.

	With --json, prints `{"exit_code", "diagnostics", "outputs"}` on stdout;
	otherwise prints human-readable diagnostics to stderr.
	"""
	parser = argparse.ArgumentParser(prog="staticmirror", description="Generate static mirrors for reflectable programs")
	parser.add_argument("entry", nargs="+", help="Entry point module name(s); each one is a closed-world unit")
	parser.add_argument(
		"-M",
		"--module-path",
		dest="module_paths",
		action="append",
		type=Path,
		help="Module root directory (repeatable; default: current directory)",
	)
	parser.add_argument("-o", "--out-dir", type=Path, help="Directory receiving the transformed modules")
	parser.add_argument("--config", type=Path, help="JSON file overriding transformer options")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/code/message/severity/file/line/column)",
	)
	args = parser.parse_args(argv)

	try:
		options = load_options(args.config) if args.config is not None else TransformOptions()
	except TransformerConfigError as err:
		if args.json:
			print(json.dumps({"exit_code": 2, "error": err.to_dict(), "diagnostics": [], "outputs": []}))
		else:
			print(f"staticmirror: {err.format_human()}", file=sys.stderr)
		return 2

	module_paths = list(args.module_paths or []) or [Path(".")]
	sources = SourceSet.from_roots(module_paths).merged(runtime_sources())
	diagnostics: List[Diagnostic] = []
	loader = ProgramLoader(sources, diagnostics=diagnostics)
	result = transform_program(loader.model_for, list(args.entry), options)
	diagnostics.extend(result.diagnostics)

	exit_code = 1 if has_errors(diagnostics) else 0
	if args.out_dir is not None:
		_write_outputs(args.out_dir, result.outputs, sources)
	_report(diagnostics, sorted(result.outputs), exit_code, args.json)
	return exit_code


__all__ = ["main", "output_path"]
