"""Toolary - multi-key Gemini request engine for the Toolary page tools."""

__version__ = "1.0.0"
