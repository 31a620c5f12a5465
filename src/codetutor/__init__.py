"""codetutor: turn AI code commentary into line-anchored, reversible edits."""

__all__ = ["__version__"]

__version__ = "0.1.0"
