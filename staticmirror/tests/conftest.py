# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import importlib
import sys
from pathlib import Path
from typing import Dict, List

import pytest

from staticmirror.transformer.driver import output_path


@pytest.fixture
def import_outputs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
	"""
	Write transformed modules under tmp_path and import one of them.

	Modules imported this way are dropped from sys.modules afterwards so tests
	can reuse package names.
	"""
	written: List[str] = []

	def _load(outputs: Dict[str, str], module: str, packages=()):
		for name, text in outputs.items():
			is_package = name in packages or any(o.startswith(name + ".") for o in outputs)
			path = output_path(tmp_path, name, is_package)
			path.parent.mkdir(parents=True, exist_ok=True)
			path.write_text(text, encoding="utf-8")
			written.append(name)
		monkeypatch.syspath_prepend(str(tmp_path))
		importlib.invalidate_caches()
		return importlib.import_module(module)

	yield _load
	roots = {name.split(".", 1)[0] for name in written}
	for name in list(sys.modules):
		if name.split(".", 1)[0] in roots:
			del sys.modules[name]
