"""Continuum: memory consolidation and invocation context engine."""

__version__ = "0.1.0"
