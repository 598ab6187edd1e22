"""gobinaries - on-demand Go binaries.

This package resolves Go module versions, compiles the module's commands for
a requested OS/architecture in a throwaway workspace, caches the executable
in an object store, and serves it to clients.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
