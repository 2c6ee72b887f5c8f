"""
Core components for patchable.

This package contains the patch schemas, the merge engine, record patches,
runtime patch type derivation and the plain-data serialization of patches.
"""

__all__ = []
