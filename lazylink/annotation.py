# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Annotation parsing: `#[lazylink(<expr>)]` -> LinkStrategy.

Three shapes are accepted, tried in this order:

  vulkan | opengl                        -> WellKnown
  name = "lib"                           -> Named
  any(name = "a", name = "b", ...)       -> NamedAny

Anything else is an error pointing at the offending sub-expression. There is
no default strategy: a malformed annotation aborts its whole block.
"""

from __future__ import annotations

from typing import List, Optional

from lark.exceptions import UnexpectedInput

from lazylink.core.diagnostics import PHASE_ANNOTATION, Diagnostic, DiagnosticError, expected_found
from lazylink.core.span import Span
from lazylink.parser import StringEscapeError, escape_diagnostic, parse_annotation_expr, syntax_diagnostic
from lazylink.parser.ast import AssignExpr, CallExpr, Expr, LitExpr, PathExpr, expr_to_source
from lazylink.strategy import WELL_KNOWN_KEYWORDS, LinkStrategy, Named, NamedAny, WellKnown

ANNOTATION_ATTR = "lazylink"

_ALTERNATIVES = "`vulkan`, `opengl`, `any`, or `name`"


class AnnotationError(DiagnosticError):
	"""Malformed annotation; `diagnostic` points at the offending sub-expression."""


def parse_annotation(source: str, *, file: Optional[str] = None) -> LinkStrategy:
	"""Parse annotation text (the part inside `#[lazylink(...)]`)."""
	try:
		expr = parse_annotation_expr(source)
	except UnexpectedInput as err:
		diag = syntax_diagnostic(err, file=file)
		diag.phase = PHASE_ANNOTATION
		raise AnnotationError(diag) from err
	except StringEscapeError as err:
		diag = escape_diagnostic(err, file=file)
		diag.phase = PHASE_ANNOTATION
		raise AnnotationError(diag) from err
	return link_strategy_from_expr(expr, file=file)


def link_strategy_from_expr(expr: Expr, *, file: Optional[str] = None) -> LinkStrategy:
	"""Decide the LinkStrategy for an already-parsed annotation expression."""
	if isinstance(expr, PathExpr):
		# Form 1: `#[lazylink(vulkan)]`
		api = WELL_KNOWN_KEYWORDS.get(expr.ident or "")
		if api is None:
			raise _error(expr, _ALTERNATIVES, file=file)
		return WellKnown(api)
	if isinstance(expr, AssignExpr):
		# Form 2: `#[lazylink(name = "foo")]`
		return Named(_name_pair(expr, file=file))
	if isinstance(expr, CallExpr):
		# Form 3: `#[lazylink(any(name = "a", ...))]`
		if expr.func.ident != "any":
			raise _error(expr.func, "function `any`", file=file)
		# Non-recursive: nested `any(...)` or well-known tags are not allowed here.
		libraries: List[str] = []
		for arg in expr.args:
			if not isinstance(arg, AssignExpr):
				raise _error(arg, "`name = <string>`", file=file)
			libraries.append(_name_pair(arg, file=file))
		if not libraries:
			raise AnnotationError(
				Diagnostic(
					message="no arguments detected",
					phase=PHASE_ANNOTATION,
					span=_span(expr, file),
					expected="`name = <string>`",
					found=expr_to_source(expr),
				)
			)
		return NamedAny(tuple(libraries))
	raise _error(expr, _ALTERNATIVES, file=file)


def strategy_from_attribute(attr_expr: Expr, *, file: Optional[str] = None) -> LinkStrategy:
	"""
	Unwrap `lazylink(<annotation>)` and decide its strategy.

	The wrapper takes exactly one argument.
	"""
	if not isinstance(attr_expr, CallExpr) or attr_expr.func.ident != ANNOTATION_ATTR:
		raise _error(attr_expr, f"`{ANNOTATION_ATTR}(...)`", file=file)
	if len(attr_expr.args) != 1:
		raise AnnotationError(
			Diagnostic(
				message=f"`{ANNOTATION_ATTR}` takes exactly one annotation, found {len(attr_expr.args)}",
				phase=PHASE_ANNOTATION,
				span=_span(attr_expr, file),
				expected=_ALTERNATIVES,
				found=expr_to_source(attr_expr),
			)
		)
	return link_strategy_from_expr(attr_expr.args[0], file=file)


def _name_pair(assign: AssignExpr, *, file: Optional[str]) -> str:
	if not (isinstance(assign.left, PathExpr) and assign.left.ident == "name"):
		raise _error(assign.left, "identifier `name`", file=file)
	right = assign.right
	if not (isinstance(right, LitExpr) and right.kind == "str"):
		raise _error(right, "string literal", file=file)
	return str(right.value)


def _error(expr: Expr, expected: str, *, file: Optional[str]) -> AnnotationError:
	found = expr_to_source(expr)
	return AnnotationError(
		Diagnostic(
			message=expected_found(expected, found),
			phase=PHASE_ANNOTATION,
			span=_span(expr, file),
			expected=expected,
			found=found,
		)
	)


def _span(expr: Expr, file: Optional[str]) -> Span:
	return expr.loc.with_file(file)


__all__ = [
	"ANNOTATION_ATTR",
	"AnnotationError",
	"link_strategy_from_expr",
	"parse_annotation",
	"strategy_from_attribute",
]
