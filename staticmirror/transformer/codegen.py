# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Mirror code generator.

Emits Python source text for one module of a transformed unit:

- a header comment at the top of the module;
- rewritten marker imports (see `directives`);
- a `reflect` dispatcher at the end of every reflector class body;
- a trailer at the end of the module importing the mirror base module and
  the modules whose classes the module's reflectors cover, followed by the
  class and instance mirrors of the module's annotated classes.

The trailer sits after all user code, so import cycles between reflector
modules and annotated-class modules resolve like any late import.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from staticmirror.model.protocol import MethodDecl, ModuleDecl, ParamShape, ProgramModel
from staticmirror.transformer.capabilities import InvokeFilter
from staticmirror.transformer.directives import rewrite_marker_directives
from staticmirror.transformer.errors import ReflectorShapeError
from staticmirror.transformer.naming import (
	CLASS_MIRROR_ROLE,
	INSTANCE_MIRROR_ROLE,
	MIRRORS_ALIAS,
	TransformSession,
)
from staticmirror.transformer.source_patch import SourcePatch
from staticmirror.transformer.world import ClassDomain, ReflectorDomain, World

HEADER_COMMENT = "# This file has been transformed by reflectable."
GENERATED_COMMENT = "# Generated"
REST_OF_CLASS = f"{GENERATED_COMMENT}: Rest of class"
REST_OF_FILE = f"{GENERATED_COMMENT}: Rest of file"

_CODING_RE = re.compile(r"^[ \t\f]*#.*?coding[:=][ \t]*[-\w.]+")

_SHAPE_DEFAULTS = ParamShape()


def _header_offset(source: str) -> int:
	"""Offset after a leading shebang and/or encoding declaration."""
	offset = 0
	for index in range(2):
		end = source.find("\n", offset)
		line = source[offset:] if end < 0 else source[offset : end + 1]
		if not line:
			break
		if (index == 0 and line.startswith("#!")) or _CODING_RE.match(line):
			offset += len(line)
			continue
		break
	return offset


def _reindent(line: str, unit: str) -> str:
	"""Replace the leading tabs of a generated line with `unit` each."""
	body = line.lstrip("\t")
	return unit * (len(line) - len(body)) + body


def render_call_shape(params: ParamShape) -> str:
	"""Render `params` as a `CallShape(...)` constructor call (defaults omitted)."""
	parts: List[str] = []
	for name in (
		"positional",
		"positional_only",
		"required_positional",
		"keyword_only",
		"required_keyword_only",
		"var_positional",
		"var_keyword",
	):
		value = getattr(params, name)
		if value != getattr(_SHAPE_DEFAULTS, name):
			parts.append(f"{name}={value!r}")
	return f"{MIRRORS_ALIAS}.CallShape({', '.join(parts)})"


def _render_names(names) -> str:
	ordered = sorted(names)
	if not ordered:
		return "frozenset()"
	return "frozenset({" + ", ".join(repr(n) for n in ordered) + "})"


def _render_shapes(members: List[MethodDecl], indent: str) -> List[str]:
	if not members:
		return ["{}"]
	lines = ["{"]
	for method in members:
		lines.append(f"{indent}\t{method.name!r}: {render_call_shape(method.params)},")
	lines.append(f"{indent}}}")
	return lines


def _invoke_method(members: List[MethodDecl], target: str, check: str) -> List[str]:
	lines = [
		"\tdef invoke(self, member_name, positional_arguments, named_arguments=None):",
		"\t\tif named_arguments is None:",
		"\t\t\tnamed_arguments = {}",
	]
	for method in members:
		lines.extend(
			[
				f"\t\tif member_name == {method.name!r}:",
				f"\t\t\tself.{check}(member_name, positional_arguments, named_arguments)",
				f"\t\t\treturn {target}.{method.name}(*positional_arguments, **named_arguments)",
			]
		)
	lines.append("\t\treturn super().invoke(member_name, positional_arguments, named_arguments)")
	return lines


class ModuleCodegen:
	"""Generates the edits of every module in one unit."""

	def __init__(self, model: ProgramModel, world: World, session: TransformSession) -> None:
		self.model = model
		self.world = world
		self.session = session
		self.options = session.options
		self._prefixes: Dict[Tuple[str, str], str] = {}
		self._plan_names()

	def _plan_names(self) -> None:
		# Names are handed out in world order, independent of module processing order.
		for domain in self.world.reflector_domains():
			for cd in domain.classes:
				self._prefixes[(domain.reflector.qualified_name, cd.type.qualified_name)] = self.session.prefix_for(
					domain.reflector.qualified_name, cd.module, cd.type.name
				)

	def mirror_name(self, cd: ClassDomain, role: str) -> str:
		prefix = self._prefixes[(cd.reflector_domain.reflector.qualified_name, cd.type.qualified_name)]
		return self.session.mirror_name(prefix, cd.type.name, role)

	# --- module level ---

	def transform_module(self, module: ModuleDecl) -> Optional[SourcePatch]:
		"""Return the edits for `module`, or None when the module is exempt."""
		if self.options.is_exempt(module.name):
			return None
		source = self.model.source_of(module)
		patch = SourcePatch(source)
		patch.insert(_header_offset(source), HEADER_COMMENT + "\n")
		reflectors = self.world.reflectors_of_module(module)
		annotated = self.world.annotated_classes_of_module(module)
		aliases: Dict[str, str] = {}
		for domain in reflectors:
			for missing in domain.missing_imports:
				if missing.name not in aliases:
					aliases[missing.name] = self.session.import_alias()
		for domain in reflectors:
			self._insert_reflect(patch, source, domain, aliases)
		# After the reflect inserts, so a directive right below a reflector stays outside its body.
		rewrite_marker_directives(self.model, module, patch, self.options, self.session.diagnostics)
		if reflectors or annotated:
			patch.append(self._trailer(source, module, aliases, annotated))
		return patch

	def _trailer(self, source: str, module: ModuleDecl, aliases: Dict[str, str], annotated: List[ClassDomain]) -> str:
		lines: List[str] = []
		if source and not source.endswith("\n"):
			lines.append("")
		lines.extend(["", "", REST_OF_FILE, ""])
		lines.append(f"import {self.options.mirrors_module} as {MIRRORS_ALIAS}")
		for name, alias in aliases.items():
			target = self.model.module(name)
			ref = self.model.import_reference(target, module) if target is not None else name
			lines.append(f"import {ref} as {alias}")
		for cd in annotated:
			lines.extend(["", ""])
			lines.extend(self.class_mirror_code(cd))
			lines.extend(["", ""])
			lines.extend(self.instance_mirror_code(cd))
		return "\n".join(lines) + "\n"

	# --- reflector classes ---

	def _insert_reflect(self, patch: SourcePatch, source: str, domain: ReflectorDomain, aliases: Dict[str, str]) -> None:
		info = self.model.class_body_info(domain.reflector)
		if info.inline_body:
			raise ReflectorShapeError(domain.reflector.qualified_name, "class body must not share the class header line")
		if "reflect" in info.member_names:
			raise ReflectorShapeError(domain.reflector.qualified_name, "reflectors must not define 'reflect'")
		indent = info.indent
		lines: List[str] = []
		if info.insert_at == len(source) and source and not source.endswith("\n"):
			lines.append("")
		lines.append("")
		lines.append(f"{indent}{REST_OF_CLASS}")
		lines.extend(f"{indent}{_reindent(line, indent)}" for line in self.reflect_code(domain, aliases))
		patch.insert(info.insert_at, "\n".join(lines) + "\n")

	def reflect_code(self, domain: ReflectorDomain, aliases: Dict[str, str]) -> List[str]:
		"""Lines of the `reflect` method (relative to the class body indent)."""
		lines = ["def reflect(self, reflectee):"]
		for cd in domain.classes:
			qualifier = "" if cd.module == domain.reflector.module else f"{aliases[cd.module]}."
			lines.append(f"\tif type(reflectee) is {qualifier}{cd.type.name}:")
			lines.append(f"\t\treturn {qualifier}{self.mirror_name(cd, INSTANCE_MIRROR_ROLE)}(reflectee)")
		lines.append(f"\traise {MIRRORS_ALIAS}.UnexpectedReflecteeError(reflectee)")
		return lines

	# --- mirrors ---

	def class_mirror_code(self, cd: ClassDomain) -> List[str]:
		capabilities = cd.reflector_domain.capabilities
		static_filter: InvokeFilter = capabilities.static_invoke_filter()
		members = cd.invokable_static_members
		lines = [
			f"class {self.mirror_name(cd, CLASS_MIRROR_ROLE)}({MIRRORS_ALIAS}.ClassMirrorUnimpl):",
			f"\tsimple_name = {cd.type.name!r}",
			f"\tqualified_name = {cd.type.qualified_name!r}",
		]
		unimplemented = [
			category
			for category, granted in (
				("declarations", capabilities.supports_declarations()),
				("library", capabilities.supports_library()),
				("metadata", capabilities.supports_metadata()),
			)
			if granted
		]
		if unimplemented:
			lines.append(f"\t_granted_unimplemented = {_render_names(unimplemented)}")
		if static_filter.grants_all or static_filter.names:
			lines.append(f"\t_grants_all_static_members = {static_filter.grants_all!r}")
			lines.append(f"\t_granted_static_members = {_render_names(static_filter.names)}")
		if members:
			shapes = _render_shapes(members, "\t")
			lines.append(f"\t_static_call_shapes = {shapes[0]}")
			lines.extend(shapes[1:])
			lines.append("")
			lines.extend(_invoke_method(members, cd.type.name, "_check_static_call"))
		return lines

	def instance_mirror_code(self, cd: ClassDomain) -> List[str]:
		capabilities = cd.reflector_domain.capabilities
		instance_filter = capabilities.instance_invoke_filter()
		members = cd.invokable_members
		shapes = _render_shapes(members, "\t")
		lines = [
			f"class {self.mirror_name(cd, INSTANCE_MIRROR_ROLE)}({MIRRORS_ALIAS}.InstanceMirrorUnimpl):",
			f"\t_grants_all_instance_members = {instance_filter.grants_all!r}",
			f"\t_granted_instance_members = {_render_names(instance_filter.names)}",
			f"\t_call_shapes = {shapes[0]}",
			*shapes[1:],
			"",
			"\tdef __init__(self, reflectee):",
			"\t\tself.reflectee = reflectee",
		]
		if capabilities.supports_type():
			lines.extend(
				[
					"",
					"\t@property",
					"\tdef type(self):",
					f"\t\treturn {self.mirror_name(cd, CLASS_MIRROR_ROLE)}()",
				]
			)
		lines.append("")
		lines.extend(_invoke_method(members, "self.reflectee", "_check_call"))
		return lines


__all__ = [
	"HEADER_COMMENT",
	"REST_OF_CLASS",
	"REST_OF_FILE",
	"ModuleCodegen",
	"render_call_shape",
]
