# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared core structures (spans, diagnostics)."""

from .diagnostics import Diagnostic, DiagnosticError
from .span import Span

__all__ = ["Diagnostic", "DiagnosticError", "Span"]
