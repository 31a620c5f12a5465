"""Core value types shared by the analysis and editor layers."""

from .ranges import LineRange

__all__ = ["LineRange"]
