"""dpm Language Server package.

This package provides:
- A pygls-based Language Server for dpm command scripts.
- A lightweight indexer that scans documents for command calls without evaluation.

Note: The LSP does not evaluate user buffers; it builds a static index from text.
"""

__all__ = [
    "server",
    "indexer",
]
