# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Host-side runtime for reflectable programs.

Programs import `reflectable` (the marker module) and `capability` (the
capability vocabulary). The transformer rewrites marker imports to
`static_reflectable` and generates mirrors extending `mirrors_unimpl`.
"""

__all__ = []
