#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Malformed annotations: each error points at the offending sub-expression."""

import pytest

from lazylink.annotation import AnnotationError, parse_annotation, strategy_from_attribute
from lazylink.core.diagnostics import PHASE_ANNOTATION
from lazylink.parser import parse_annotation_expr


def _error(text: str):
	with pytest.raises(AnnotationError) as excinfo:
		parse_annotation(text, file="demo.link")
	return excinfo.value.diagnostic


def test_unknown_identifier():
	diag = _error("metal")
	assert diag.message == "expected `vulkan`, `opengl`, `any`, or `name`, found `metal`"
	assert diag.phase == PHASE_ANNOTATION
	assert diag.found == "metal"
	assert diag.span.file == "demo.link"
	assert (diag.span.line, diag.span.column) == (1, 1)


def test_literal_alone_is_not_a_strategy():
	diag = _error('"foo"')
	assert diag.found == '"foo"'
	assert "`vulkan`, `opengl`, `any`, or `name`" in diag.message


def test_wrong_left_hand_side():
	diag = _error('lib = "foo"')
	assert diag.message == "expected identifier `name`, found `lib`"
	assert diag.expected == "identifier `name`"


def test_non_string_right_hand_side():
	diag = _error("name = 3")
	assert diag.message == "expected string literal, found `3`"
	assert diag.span.column == 8


def test_wrong_callee():
	diag = _error('all(name = "a")')
	assert diag.message == "expected function `any`, found `all`"


def test_any_argument_must_be_a_pair():
	diag = _error('any(name = "a", vulkan)')
	assert diag.message == "expected `name = <string>`, found `vulkan`"
	assert diag.span.column == 17


def test_nested_any_is_rejected():
	diag = _error('any(any(name = "a"))')
	assert diag.expected == "`name = <string>`"
	assert diag.found == 'any(name = "a")'


def test_any_without_arguments():
	diag = _error("any()")
	assert diag.message == "no arguments detected"


def test_bad_pair_inside_any_reports_the_pair():
	diag = _error('any(name = "a", lib = "b")')
	assert diag.message == "expected identifier `name`, found `lib`"


def test_syntax_error_becomes_annotation_diagnostic():
	diag = _error("name =")
	assert diag.phase == PHASE_ANNOTATION
	assert diag.message == "unexpected end of input"


def test_wrapper_takes_exactly_one_argument():
	expr = parse_annotation_expr("lazylink(vulkan, opengl)")
	with pytest.raises(AnnotationError) as excinfo:
		strategy_from_attribute(expr)
	assert "exactly one annotation" in excinfo.value.diagnostic.message


def test_bad_string_escape_becomes_annotation_diagnostic():
	diag = _error('name = "lib\\q"')
	assert diag.phase == PHASE_ANNOTATION
	assert diag.message == "unknown character escape `\\q`"
	assert diag.found == "\\q"
	assert diag.span.file == "demo.link"
	assert (diag.span.line, diag.span.column, diag.span.end_column) == (1, 12, 14)
