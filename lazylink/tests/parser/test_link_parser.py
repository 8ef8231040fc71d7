#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Link-file grammar and AST adapter."""

from lazylink.core.diagnostics import PHASE_PARSER
from lazylink.parser import parse_link_source
from lazylink.parser.ast import (
	FnType,
	NamedParam,
	NeverType,
	PathType,
	PtrType,
	ReceiverParam,
	StaticDecl,
	type_to_source,
)


def _parse(src: str):
	link_file, diags = parse_link_source(src, file="demo.link")
	assert diags == []
	return link_file


def test_block_attributes_abi_and_items():
	lf = _parse(
		"""
		// comment
		#[lazylink(name = "foo")]
		extern "C" {
			#[doc = "Adds."]
			pub fn foo_add(a: i32, b: i32) -> i32;
			fn foo_reset();
		}
		"""
	)
	assert len(lf.blocks) == 1
	block = lf.blocks[0]
	assert block.abi == "C"
	assert [attr.head for attr in block.attributes] == ["lazylink"]
	add, reset = block.items
	assert add.name == "foo_add"
	assert add.visibility.text == "pub"
	assert [attr.text for attr in add.attributes] == ['doc = "Adds."']
	assert [p.name for p in add.params] == ["a", "b"]
	assert type_to_source(add.ret) == "i32"
	assert add.terminated
	assert reset.visibility is None
	assert reset.ret is None


def test_missing_abi_and_missing_semicolon_still_parse():
	lf = _parse(
		"""
		#[lazylink(vulkan)]
		extern {
			fn vkFoo(x: u32)
		}
		"""
	)
	block = lf.blocks[0]
	assert block.abi is None
	assert block.items[0].terminated is False


def test_types_and_wildcards():
	lf = _parse(
		"""
		type Callback = extern "C" fn(*mut c_void) -> !;
		#[lazylink(opengl)]
		extern "system" {
			pub(crate) fn glThing(_: *const u8, cb: Option<Callback>, out: &mut [u32; 4]) -> !;
		}
		"""
	)
	alias = lf.aliases[0]
	assert alias.name == "Callback"
	assert isinstance(alias.type_expr, FnType)
	assert alias.type_expr.abi == "C"
	fn = lf.blocks[0].items[0]
	assert fn.visibility.text == "pub(crate)"
	wildcard, cb, out = fn.params
	assert isinstance(wildcard, NamedParam) and wildcard.name is None
	assert isinstance(wildcard.type_expr, PtrType) and not wildcard.type_expr.mutable
	assert isinstance(cb.type_expr, PathType) and cb.type_expr.name == "Option"
	assert type_to_source(out.type_expr) == "&mut [u32; 4]"
	assert isinstance(fn.ret, NeverType)


def test_receivers_are_kept_as_text():
	lf = _parse(
		"""
		#[lazylink(vulkan)]
		extern "C" {
			fn a(&mut self);
			fn b(self: Box<Self>, x: i32);
		}
		"""
	)
	a, b = lf.blocks[0].items
	assert isinstance(a.params[0], ReceiverParam)
	assert a.params[0].text == "&mut self"
	assert b.params[0].text == "self: Box<Self>"


def test_static_items_parse_for_later_rejection():
	lf = _parse(
		"""
		#[lazylink(name = "foo")]
		extern "C" { static mut COUNTER: u32; }
		"""
	)
	item = lf.blocks[0].items[0]
	assert isinstance(item, StaticDecl)
	assert item.mutable


def test_syntax_error_is_one_diagnostic():
	link_file, diags = parse_link_source('extern "C" { fn ( }', file="bad.link")
	assert link_file is None
	assert len(diags) == 1
	diag = diags[0]
	assert diag.phase == PHASE_PARSER
	assert diag.span.file == "bad.link"
	assert diag.span.line == 1
	assert diag.found == "("


def test_unexpected_character():
	link_file, diags = parse_link_source("extern \"C\" { fn f() -> i32 @ }")
	assert link_file is None
	assert diags[0].message == "unexpected character `@`"


def test_bad_string_escapes_are_diagnostics():
	cases = {
		"lib\\u20ac": "invalid unicode escape `\\u`",
		"lib\\xff": "out of range hex escape `\\xff`",
		"lib\\xZ": "invalid hex escape `\\xZ`",
		"lib\\u{d800}": "unicode escape must not be a surrogate `\\u{d800}`",
		"lib\\u{110000}": "out of range unicode escape `\\u{110000}`",
	}
	for text, message in cases.items():
		src = f'#[lazylink(name = "{text}")]\nextern "C" {{ fn f(); }}\n'
		link_file, diags = parse_link_source(src, file="esc.link")
		assert link_file is None
		assert [d.message for d in diags] == [message]
		assert diags[0].phase == PHASE_PARSER
		assert diags[0].span.file == "esc.link"
		assert (diags[0].span.line, diags[0].span.column) == (1, 23)


def test_escape_error_on_later_line_of_multiline_string():
	src = 'extern "C\n\\q" { fn f(); }'
	link_file, diags = parse_link_source(src)
	assert link_file is None
	assert (diags[0].span.line, diags[0].span.column) == (2, 1)


def test_unicode_escape_in_abi_and_literal():
	link_file, diags = parse_link_source('#[lazylink(name = "caf\\u{e9}")]\nextern "\\x43" { fn f(); }\n')
	assert diags == []
	block = link_file.blocks[0]
	assert block.abi == "C"
	assert block.attributes[0].expr.args[0].right.value == "café"
