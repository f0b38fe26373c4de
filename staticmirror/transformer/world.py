# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reflection world: which classes each reflector covers, with what capabilities.

`build_world` scans one closed-world unit once:

1. locate the marker class by name and `THIS_CLASS_ID` fingerprint;
2. classify every class decorator; decorators that instantiate a direct
   marker subclass (a reflector) put the class into that reflector's domain;
3. compute, per domain, the modules the reflector's module must import.

The result is read-only from then on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from staticmirror.core.diagnostics import Diagnostic
from staticmirror.model.const_expr import ConstExpr, IdentRef, Instantiation, ListLiteral, Literal, QualifiedRef
from staticmirror.model.protocol import MemberKind, MethodDecl, ModuleDecl, ProgramModel, TypeDecl
from staticmirror.transformer import errors
from staticmirror.transformer.capabilities import CapabilitySet
from staticmirror.transformer.const_resolver import ConstantResolver
from staticmirror.transformer.errors import CapabilityNotSupportedError, ReflectorShapeError
from staticmirror.transformer.options import TransformOptions


@dataclass
class ClassDomain:
	"""One annotated class as seen by one reflector."""

	type: TypeDecl
	invokable_members: List[MethodDecl]
	invokable_static_members: List[MethodDecl]
	reflector_domain: "ReflectorDomain" = field(repr=False, compare=False)

	@property
	def module(self) -> str:
		return self.type.module


@dataclass
class ReflectorDomain:
	reflector: TypeDecl
	capabilities: CapabilitySet
	classes: List[ClassDomain] = field(default_factory=list)
	missing_imports: List[ModuleDecl] = field(default_factory=list)

	def class_domain(self, type_decl: TypeDecl) -> Optional[ClassDomain]:
		for cd in self.classes:
			if cd.type == type_decl:
				return cd
		return None


@dataclass
class World:
	marker: TypeDecl
	domains: Dict[TypeDecl, ReflectorDomain] = field(default_factory=dict)

	def reflector_domains(self) -> List[ReflectorDomain]:
		return list(self.domains.values())

	def reflectors_of_module(self, module: ModuleDecl) -> List[ReflectorDomain]:
		return [d for d in self.domains.values() if d.reflector.module == module.name]

	def annotated_classes_of_module(self, module: ModuleDecl) -> List[ClassDomain]:
		return [cd for d in self.domains.values() for cd in d.classes if cd.type.module == module.name]


def find_marker(model: ProgramModel, options: TransformOptions) -> Optional[TypeDecl]:
	"""Return the marker class if the unit contains it (name and fingerprint must match)."""
	for module in model.modules():
		for type_decl in model.types_of(module):
			if type_decl.name != options.marker_name:
				continue
			id_field = model.static_field(type_decl, options.marker_id_field)
			if id_field is None or not id_field.is_const:
				continue
			init = id_field.initializer
			if isinstance(init, Literal) and init.value == options.marker_id:
				return type_decl
	return None


def is_reflector(model: ProgramModel, type_decl: TypeDecl, marker: TypeDecl) -> bool:
	"""True when `marker` is one of the direct bases of `type_decl`."""
	return any(model.is_same_declaration(base, marker) for base in model.direct_supertypes(type_decl))


def declares_reflector(model: ProgramModel, module: ModuleDecl, marker: TypeDecl) -> bool:
	"""True when `module` declares a reflector, whether or not any class uses it."""
	return any(is_reflector(model, t, marker) for t in model.types_of(module))


class WorldBuilder:
	def __init__(self, model: ProgramModel, options: TransformOptions, diagnostics: List[Diagnostic]) -> None:
		self.model = model
		self.options = options
		self.diagnostics = diagnostics
		self.resolver = ConstantResolver(model, options, diagnostics)
		self._failed: Set[TypeDecl] = set()

	def build(self) -> Optional[World]:
		marker = find_marker(self.model, self.options)
		if marker is None:
			return None
		world = World(marker=marker)
		for module in self.model.modules():
			for type_decl in self.model.types_of(module):
				for annotation in self.model.annotations_of(type_decl):
					reflector = self._reflector_of(annotation, marker)
					if reflector is None:
						continue
					domain = self._domain_for(world, reflector)
					if domain is None:
						continue
					self._add_class(domain, type_decl, annotation)
		for domain in world.domains.values():
			domain.missing_imports = self._missing_imports(domain)
		return world

	def _annotation_type(self, annotation: ConstExpr) -> Optional[TypeDecl]:
		if isinstance(annotation, Instantiation):
			callee = self.model.resolve_reference(annotation.callee)
			return callee if isinstance(callee, TypeDecl) else None
		if isinstance(annotation, (IdentRef, QualifiedRef)):
			const = self.model.resolve_constant(annotation)
			if const is None or not const.is_const:
				return None
			return self.resolver.instantiated_type(annotation)
		# Other decorator shapes are not reflection requests.
		return None

	def _reflector_of(self, annotation: ConstExpr, marker: TypeDecl) -> Optional[TypeDecl]:
		type_decl = self._annotation_type(annotation)
		if type_decl is None:
			return None
		is_marker = self.model.is_same_declaration(type_decl, marker)
		if not is_marker and marker not in self.model.all_supertypes(type_decl):
			return None
		if is_marker or not is_reflector(self.model, type_decl, marker):
			self.diagnostics.append(
				Diagnostic(
					message=errors.apply_template(
						errors.METADATA_NOT_DIRECT_SUBCLASS_MSG,
						{"type": type_decl.qualified_name, "marker": marker.qualified_name},
					),
					code=errors.METADATA_NOT_DIRECT_SUBCLASS,
					phase="world",
					span=annotation.span,
				)
			)
			return None
		return type_decl

	def _domain_for(self, world: World, reflector: TypeDecl) -> Optional[ReflectorDomain]:
		domain = world.domains.get(reflector)
		if domain is not None:
			return domain
		if reflector in self._failed:
			return None
		capabilities = self._capabilities_of(reflector)
		if capabilities is None:
			self._failed.add(reflector)
			return None
		domain = ReflectorDomain(reflector=reflector, capabilities=capabilities)
		world.domains[reflector] = domain
		return domain

	def _capabilities_of(self, reflector: TypeDecl) -> Optional[CapabilitySet]:
		name = reflector.qualified_name
		constructors = self.model.constructors_of(reflector)
		if len(constructors) != 1:
			raise ReflectorShapeError(name, f"expected exactly one __init__, found {len(constructors)}")
		ctor = constructors[0]
		if not ctor.is_default:
			raise ReflectorShapeError(name, "__init__ must not take parameters besides self")
		if ctor.super_args is None or ctor.initializer_count != 1:
			raise ReflectorShapeError(name, "__init__ body must be a single super().__init__([...]) call")
		if len(ctor.super_args) != 1 or ctor.super_keyword_count:
			raise ReflectorShapeError(name, "super().__init__ must receive exactly one argument")
		capability_list = ctor.super_args[0]
		if not isinstance(capability_list, ListLiteral):
			raise ReflectorShapeError(name, "the super().__init__ argument must be a list literal")
		capabilities = self.resolver.capability_set(capability_list.elements)
		if capabilities is None:
			return None
		try:
			capabilities.instance_invoke_filter()
		except CapabilityNotSupportedError as err:
			self.diagnostics.append(
				Diagnostic(
					message=errors.apply_template(errors.CAPABILITY_NOT_SUPPORTED_MSG, {"reflector": name, "reason": str(err)}),
					code=errors.CAPABILITY_NOT_SUPPORTED,
					phase="world",
					span=ctor.span,
				)
			)
			return None
		return capabilities

	def _add_class(self, domain: ReflectorDomain, type_decl: TypeDecl, annotation: ConstExpr) -> None:
		if domain.class_domain(type_decl) is not None:
			self.diagnostics.append(
				Diagnostic(
					message=errors.apply_template(
						errors.DUPLICATE_ANNOTATION_MSG,
						{"cls": type_decl.qualified_name, "reflector": domain.reflector.qualified_name},
					),
					code=errors.DUPLICATE_ANNOTATION,
					phase="world",
					severity="warning",
					span=annotation.span,
				)
			)
			return
		domain.classes.append(
			ClassDomain(
				type=type_decl,
				invokable_members=self._invokable_members(type_decl, domain.capabilities),
				invokable_static_members=self._invokable_static_members(type_decl, domain.capabilities),
				reflector_domain=domain,
			)
		)

	def _invokable_members(self, type_decl: TypeDecl, capabilities: CapabilitySet) -> List[MethodDecl]:
		seen: Set[str] = set()
		out: List[MethodDecl] = []
		for owner in [type_decl, *self.model.all_supertypes(type_decl)]:
			for method in self.model.methods_of(owner):
				if method.name in seen:
					continue
				# The most derived declaration decides, even if it is not a plain method.
				seen.add(method.name)
				if method.kind is not MemberKind.INSTANCE:
					continue
				if capabilities.supports_instance_invoke(method.name):
					out.append(method)
		return out

	def _invokable_static_members(self, type_decl: TypeDecl, capabilities: CapabilitySet) -> List[MethodDecl]:
		return [
			m
			for m in self.model.methods_of(type_decl)
			if m.kind in (MemberKind.STATIC, MemberKind.CLASS) and capabilities.supports_static_invoke(m.name)
		]

	def _missing_imports(self, domain: ReflectorDomain) -> List[ModuleDecl]:
		own = domain.reflector.module
		seen: Set[str] = set()
		out: List[ModuleDecl] = []
		for cd in domain.classes:
			if cd.module == own or cd.module in seen:
				continue
			seen.add(cd.module)
			out.append(self.model.module_of(cd.type))
		return out


def build_world(model: ProgramModel, options: TransformOptions, diagnostics: List[Diagnostic]) -> Optional[World]:
	"""
	Build the reflection world of one unit, or return None if the marker is absent.

	Raises ReflectorShapeError when a used reflector has an invalid constructor.
	"""
	return WorldBuilder(model, options, diagnostics).build()


__all__ = [
	"ClassDomain",
	"ReflectorDomain",
	"World",
	"WorldBuilder",
	"find_marker",
	"is_reflector",
	"declares_reflector",
	"build_world",
]
