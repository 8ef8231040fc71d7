# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Link-file parser: lark grammar plus AST adapter.

`parse_link_source` is the diagnostic-returning entry point used by the
expansion pipeline; a syntax error is unrecoverable for the whole file and is
reported as exactly one diagnostic.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from lazylink.core.diagnostics import PHASE_PARSER, Diagnostic
from lazylink.core.span import Span

from . import ast
from .parser import StringEscapeError, parse_annotation_expr, parse_link_file


def escape_diagnostic(err: StringEscapeError, *, file: Optional[str] = None) -> Diagnostic:
	"""Convert a malformed string escape into a parser-phase diagnostic."""
	return Diagnostic(message=str(err), phase=PHASE_PARSER, span=err.span.with_file(file), found=err.found)


def syntax_diagnostic(err: UnexpectedInput, *, file: Optional[str] = None) -> Diagnostic:
	"""Convert a lark syntax error into a single parser-phase diagnostic."""
	span = Span(
		file=file,
		line=getattr(err, "line", None),
		column=getattr(err, "column", None),
	)
	if isinstance(err, UnexpectedToken):
		found = err.token.value if err.token.type != "$END" else None
		expected = ", ".join(sorted(err.expected)) if err.expected else None
		message = f"unexpected `{found}`" if found is not None else "unexpected end of input"
	elif isinstance(err, UnexpectedCharacters):
		found = err.char
		expected = None
		message = f"unexpected character `{found}`"
	elif isinstance(err, UnexpectedEOF):
		found = None
		expected = ", ".join(sorted(err.expected)) if err.expected else None
		message = "unexpected end of input"
	else:
		found = None
		expected = None
		message = str(err)
	notes = [f"expected one of: {expected}"] if expected else []
	return Diagnostic(
		message=message,
		phase=PHASE_PARSER,
		span=span,
		expected=expected,
		found=found,
		notes=notes,
	)


def parse_link_source(source: str, *, file: Optional[str] = None) -> Tuple[Optional[ast.LinkFile], List[Diagnostic]]:
	"""Parse `source`; on a syntax or escape error return `(None, [diagnostic])`."""
	try:
		return parse_link_file(source), []
	except UnexpectedInput as err:
		return None, [syntax_diagnostic(err, file=file)]
	except StringEscapeError as err:
		return None, [escape_diagnostic(err, file=file)]


__all__ = [
	"StringEscapeError",
	"ast",
	"escape_diagnostic",
	"parse_annotation_expr",
	"parse_link_file",
	"parse_link_source",
	"syntax_diagnostic",
]
