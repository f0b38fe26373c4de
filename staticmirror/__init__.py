# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
staticmirror: closed-world reflection for Python programs.

Packages:
  model:       read-only Program Model over host modules (Python `ast` adapter)
  transformer: world builder, capability resolution, mirror code generation
  runtime:     host-side marker module, capability vocabulary, mirror bases
"""

__all__ = []
