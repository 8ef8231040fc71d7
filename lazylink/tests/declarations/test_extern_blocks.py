#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Declaration parsing: normalization and per-function isolation."""

import pytest

from lazylink.core.diagnostics import PHASE_DECLARATION
from lazylink.declarations import parse_extern_block
from lazylink.parser import parse_link_source
from lazylink.parser.ast import type_to_source


def _block(body: str, abi: str = '"C"'):
	src = f'#[lazylink(name = "foo")]\nextern {abi} {{\n{body}\n}}\n'
	link_file, diags = parse_link_source(src)
	assert diags == []
	return link_file.blocks[0]


def test_signature_fields():
	res = parse_extern_block(
		_block('#[doc = "Adds two integers."]\n#[cold]\npub fn foo_add(a: i32, b: *const u8) -> i32;'),
		file="demo.link",
	)
	assert res.diagnostics == []
	assert res.abi == "C"
	(sig,) = res.signatures
	assert sig.name == "foo_add"
	assert sig.is_public
	assert sig.abi == "C"
	assert sig.attributes == ('doc = "Adds two integers."', "cold")
	assert sig.doc == "Adds two integers."
	assert sig.param_names == ("a", "b")
	assert type_to_source(sig.params[1].type_expr) == "*const u8"
	assert type_to_source(sig.return_type) == "i32"
	assert sig.span.file == "demo.link"


def test_wildcards_named_by_position():
	res = parse_extern_block(_block("fn f(_: i32, x: i32, _: u8);"))
	(sig,) = res.signatures
	assert sig.param_names == ("p0", "x", "p2")
	assert [p.synthesized for p in sig.params] == [True, False, True]


def test_unit_return_is_none():
	(sig,) = parse_extern_block(_block("fn f();")).signatures
	assert sig.return_type is None
	assert sig.visibility == ""


def test_missing_abi_aborts_block():
	res = parse_extern_block(_block("fn f();\nfn g();", abi=""))
	assert res.abi is None
	assert res.signatures == []
	assert len(res.diagnostics) == 1
	assert res.diagnostics[0].message == "missing ABI string after `extern`"


def test_receiver_rejects_only_that_function():
	res = parse_extern_block(_block("fn a(&self);\nfn b(x: i32);"))
	assert [s.name for s in res.signatures] == ["b"]
	(diag,) = res.diagnostics
	assert diag.message == "receiver arguments are unsupported"
	assert diag.phase == PHASE_DECLARATION
	assert diag.found == "&self"


def test_missing_semicolon_isolated():
	res = parse_extern_block(_block("fn a(x: i32)\nfn b();"))
	assert [s.name for s in res.signatures] == ["b"]
	assert res.diagnostics[0].message == "missing `;` after declaration of `a`"


def test_duplicate_parameter_collides_with_synthesized_name():
	res = parse_extern_block(_block("fn f(_: i32, p0: i32);"))
	assert res.signatures == []
	(diag,) = res.diagnostics
	assert diag.message == "duplicate parameter name `p0`"
	assert diag.notes == ["anonymous parameters are named `p<index>` by position"]


def test_duplicate_function_rejects_later_one():
	res = parse_extern_block(_block("fn f(a: i32);\nfn f(b: u8);"))
	assert len(res.signatures) == 1
	assert res.signatures[0].param_names == ("a",)
	assert res.diagnostics[0].message == "duplicate function `f` in extern block"


def test_non_function_items_rejected_per_item():
	res = parse_extern_block(_block("static X: u32;\ntype Opaque;\nfn keep();"))
	assert [s.name for s in res.signatures] == ["keep"]
	assert len(res.diagnostics) == 2
	assert all("only function declarations" in d.message for d in res.diagnostics)
	assert [d.found for d in res.diagnostics] == ["static X", "type Opaque"]


def test_reserved_function_names():
	res = parse_extern_block(_block("fn ctypes();\nfn __initializer_3();\nfn ok();"))
	assert [s.name for s in res.signatures] == ["ok"]
	assert len(res.diagnostics) == 2


def test_python_keyword_function_name():
	res = parse_extern_block(_block("fn lambda(x: i32);"))
	assert res.signatures == []
	assert "reserved" in res.diagnostics[0].message


def test_unknown_parameter_node_is_a_type_error():
	block = _block("fn f(a: i32);")
	block.items[0].params[0] = object()
	with pytest.raises(TypeError, match="unknown parameter node object"):
		parse_extern_block(block)
