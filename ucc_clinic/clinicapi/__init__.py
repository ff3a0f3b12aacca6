"""Async client for the UCC clinic backend REST API.

Submodules are imported explicitly by callers; nothing heavy loads here.
"""

__version__ = "1.0.0"
__all__ = [
	"client",
	"models",
	"exceptions",
	"utils",
]
