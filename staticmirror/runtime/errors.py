# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Run-time failures raised by generated mirrors.

Capability denial and member absence are separate hierarchies: a
`NoSuchCapabilityError` is never an `AttributeError`, and a
`ReflectableNoSuchMethodError` is never a `NoSuchCapabilityError`.
"""

from __future__ import annotations


def _describe_call(member_name, positional_arguments, named_arguments) -> str:
	args = [repr(a) for a in positional_arguments or ()]
	args.extend(f"{k}={v!r}" for k, v in (named_arguments or {}).items())
	return f"{member_name}({', '.join(args)})"


class NoSuchCapabilityError(Exception):
	"""A reflective operation was not requested by any capability."""


class NoSuchInvokeCapabilityError(NoSuchCapabilityError):
	"""Invocation denied: the reflector's capabilities do not cover the member."""

	def __init__(self, receiver, member_name, positional_arguments=(), named_arguments=None) -> None:
		self.receiver = receiver
		self.member_name = member_name
		self.positional_arguments = list(positional_arguments or ())
		self.named_arguments = dict(named_arguments or {})
		super().__init__(
			f"no capability to invoke {_describe_call(member_name, positional_arguments, named_arguments)}"
			f" on {type(receiver).__name__}"
		)


class ReflectableNoSuchMethodError(AttributeError):
	"""A granted member is absent on the reflectee or cannot take the given arguments."""

	def __init__(self, receiver, member_name, positional_arguments=(), named_arguments=None) -> None:
		self.receiver = receiver
		self.member_name = member_name
		self.positional_arguments = list(positional_arguments or ())
		self.named_arguments = dict(named_arguments or {})
		super().__init__(
			f"{type(receiver).__name__} has no member matching "
			f"{_describe_call(member_name, positional_arguments, named_arguments)}"
		)


class UnexpectedReflecteeError(TypeError):
	"""`reflect` was called on an object whose class the reflector does not cover."""

	def __init__(self, reflectee) -> None:
		self.reflectee = reflectee
		super().__init__(f"`reflect` on unexpected object {reflectee!r}")


class CapabilityNotImplementedError(NotImplementedError):
	"""A granted read capability that generated mirrors do not implement."""

	def __init__(self, category, qualified_name) -> None:
		self.category = category
		self.qualified_name = qualified_name
		super().__init__(f"{category} of {qualified_name} is granted but not implemented")


class ProgramNotTransformedError(RuntimeError):
	"""Reflection was used in a program that has not been transformed."""


__all__ = [
	"NoSuchCapabilityError",
	"NoSuchInvokeCapabilityError",
	"ReflectableNoSuchMethodError",
	"UnexpectedReflecteeError",
	"CapabilityNotImplementedError",
	"ProgramNotTransformedError",
]
