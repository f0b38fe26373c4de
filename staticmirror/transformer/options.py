# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Transformer configuration.

`TransformOptions` names the well-known runtime modules and tunes generated
names. The driver can overlay a JSON object on the defaults; anything it does
not recognize is a configuration error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Tuple

from staticmirror.transformer.errors import TransformerConfigError

MARKER_CLASS_ID = "d3a9910b05e462ab60771179f764471f24bf4de9"


@dataclass(frozen=True)
class TransformOptions:
	marker_module: str = "staticmirror.runtime.reflectable"
	marker_name: str = "Reflectable"
	marker_id: str = MARKER_CLASS_ID
	marker_id_field: str = "THIS_CLASS_ID"
	static_marker_module: str = "staticmirror.runtime.static_reflectable"
	capability_module: str = "staticmirror.runtime.capability"
	mirrors_module: str = "staticmirror.runtime.mirrors_unimpl"
	# Modules under these prefixes are never rewritten.
	exempt_prefixes: Tuple[str, ...] = ("staticmirror.runtime",)
	name_prefix: str = "Static"
	salted_names: bool = False
	max_constant_depth: int = 64

	def is_exempt(self, module_name: str) -> bool:
		return any(module_name == p or module_name.startswith(p + ".") for p in self.exempt_prefixes)


def options_from_mapping(data: Mapping[str, Any], *, base: TransformOptions | None = None) -> TransformOptions:
	"""Overlay `data` on `base` (defaults when None), validating keys and types."""
	base = base or TransformOptions()
	if not isinstance(data, Mapping):
		raise TransformerConfigError("config_not_object", "configuration must be a JSON object")
	known = {f.name: f for f in fields(TransformOptions)}
	changes: dict[str, Any] = {}
	for key, value in data.items():
		if key not in known:
			raise TransformerConfigError("config_unknown_key", f"unknown configuration key '{key}'")
		current = getattr(base, key)
		if isinstance(current, tuple):
			if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
				raise TransformerConfigError("config_bad_type", f"'{key}' must be a list of strings")
			value = tuple(value)
		elif isinstance(current, bool):
			if not isinstance(value, bool):
				raise TransformerConfigError("config_bad_type", f"'{key}' must be a boolean")
		elif isinstance(current, int):
			if isinstance(value, bool) or not isinstance(value, int) or value < 1:
				raise TransformerConfigError("config_bad_type", f"'{key}' must be a positive integer")
		elif not isinstance(value, str) or not value:
			raise TransformerConfigError("config_bad_type", f"'{key}' must be a non-empty string")
		changes[key] = value
	if "name_prefix" in changes and not changes["name_prefix"].isidentifier():
		raise TransformerConfigError("config_bad_value", "'name_prefix' must be a valid identifier")
	return replace(base, **changes)


def load_options(path: Path) -> TransformOptions:
	try:
		data = json.loads(Path(path).read_text(encoding="utf-8"))
	except OSError as err:
		raise TransformerConfigError("config_unreadable", f"cannot read configuration file {path}: {err}") from err
	except json.JSONDecodeError as err:
		raise TransformerConfigError("config_invalid_json", f"invalid JSON in {path}: {err}") from err
	return options_from_mapping(data)


__all__ = ["MARKER_CLASS_ID", "TransformOptions", "options_from_mapping", "load_options"]
