# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared diagnostic plumbing used by the model and the transformer."""

from .diagnostics import Diagnostic, has_errors
from .span import Span

__all__ = ["Diagnostic", "Span", "has_errors"]
