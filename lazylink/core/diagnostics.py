# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure for the parser, annotation and declaration phases.

Diagnostics are values: phases append them to a list and keep going where the
failure is local (one declaration) or stop the affected scope where it is not
(an annotation, a syntax error).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .span import Span

PHASE_PARSER = "parser"
PHASE_ANNOTATION = "annotation"
PHASE_DECLARATION = "declaration"
PHASE_CODEGEN = "codegen"


@dataclass
class Diagnostic:
	"""Represents a generator diagnostic (error/warning)."""

	message: str
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Source location (Span() denotes unknown).
	# Expectation/found pair for grammar errors; both optional.
	expected: str | None = None
	found: str | None = None
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	@property
	def is_error(self) -> bool:
		return self.severity == "error"

	def render(self, *, default_file: str | None = None) -> str:
		"""Render as `file:line:col: severity: message` (plus indented notes)."""
		file = self.span.file or default_file or "<input>"
		line = self.span.line if self.span.line is not None else "?"
		col = self.span.column if self.span.column is not None else "?"
		out = [f"{file}:{line}:{col}: {self.severity}: {self.message}"]
		for note in self.notes:
			out.append(f"  note: {note}")
		return "\n".join(out)

	def to_json(self, *, default_file: str | None = None) -> dict:
		"""Render to a structured JSON-friendly dict."""
		return {
			"phase": self.phase,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file or default_file,
			"line": self.span.line,
			"column": self.span.column,
			"expected": self.expected,
			"found": self.found,
			"notes": list(self.notes),
		}


class DiagnosticError(ValueError):
	"""
	User-facing error carrying a ready-made Diagnostic.

	Raised from helpers that must abort their scope; the expansion pipeline
	catches it and records `diagnostic` instead of crashing.
	"""

	def __init__(self, diagnostic: Diagnostic) -> None:
		super().__init__(diagnostic.message)
		self.diagnostic = diagnostic


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
	return any(d.is_error for d in diagnostics)


def errors_only(diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
	return [d for d in diagnostics if d.is_error]


def expected_found(expected: str, found: Optional[str]) -> str:
	"""Format the conventional `expected X, found Y` message."""
	if found is None:
		return f"expected {expected}"
	return f"expected {expected}, found `{found}`"


__all__ = [
	"Diagnostic",
	"DiagnosticError",
	"PHASE_ANNOTATION",
	"PHASE_CODEGEN",
	"PHASE_DECLARATION",
	"PHASE_PARSER",
	"errors_only",
	"expected_found",
	"has_errors",
]
