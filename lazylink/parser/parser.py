# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lark front-end for link files.

The grammar lives in `grammar.lark` next to this module. Parse trees are
walked by the `_build_*` helpers below into the dataclass AST in `ast.py`;
no semantic checks happen here (annotation shapes, receivers, terminators and
duplicates are judged later so they can be reported per scope).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from lazylink.core.span import Span

from .ast import (
	ArrayType,
	AssignExpr,
	Attribute,
	BlockItem,
	CallExpr,
	Expr,
	ExternBlock,
	FnDecl,
	FnType,
	LinkFile,
	LitExpr,
	NamedParam,
	NeverType,
	OpaqueTypeDecl,
	Param,
	PathExpr,
	PathType,
	PtrType,
	ReceiverParam,
	RefType,
	StaticDecl,
	TypeAlias,
	TypeExpr,
	UnitType,
	Visibility,
	type_to_source,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start=["start", "annotation_start"],
	propagate_positions=True,
	maybe_placeholders=False,
)


def parse_link_file(source: str) -> LinkFile:
	"""
	Parse a whole link file.

	Raises lark's `UnexpectedInput` on syntax errors and `StringEscapeError`
	on malformed string escapes; callers convert either into a diagnostic.
	"""
	tree = _PARSER.parse(source, start="start")
	return _build_link_file(tree)


def parse_annotation_expr(source: str) -> Expr:
	"""Parse a standalone annotation expression such as `name = "foo"`."""
	tree = _PARSER.parse(source, start="annotation_start")
	expr_node = next(child for child in tree.children if isinstance(child, Tree))
	return _build_expr(expr_node)


_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "\\": "\\", "0": "\0", "'": "'", '"': '"'}
_HEX_ESCAPE = re.compile(r"x([0-9A-Fa-f]{2})")
_UNICODE_ESCAPE = re.compile(r"u\{([0-9A-Fa-f][0-9A-Fa-f_]*)\}")


class StringEscapeError(ValueError):
	"""A malformed escape inside a string literal; `span` covers the escape."""

	def __init__(self, message: str, *, span: Span, found: str) -> None:
		super().__init__(message)
		self.span = span
		self.found = found


def _escape_error(tok: Token, start: int, length: int, message: str) -> StringEscapeError:
	# `start` indexes the backslash inside the unquoted content.
	prefix = tok.value[: start + 1]
	line = tok.line + prefix.count("\n")
	if "\n" in prefix:
		column = len(prefix) - prefix.rfind("\n")
	else:
		column = tok.column + len(prefix)
	found = tok.value[start + 1 : start + 1 + length]
	span = Span(line=line, column=column, end_line=line, end_column=column + len(found))
	return StringEscapeError(f"{message} `{found}`", span=span, found=found)


def _decode_string_token(tok: Token) -> str:
	"""
	Decode the escapes of a STRING token.

	Accepted: `\\n \\r \\t \\\\ \\0 \\' \\"`, `\\xHH` up to 0x7F and `\\u{H...}`
	for any Unicode scalar value (underscores allowed between digits). Any
	other escape raises `StringEscapeError` located at the backslash.
	"""
	content = tok.value[1:-1]  # strip quotes
	out: List[str] = []
	pos = 0
	while True:
		slash = content.find("\\", pos)
		if slash < 0:
			out.append(content[pos:])
			return "".join(out)
		out.append(content[pos:slash])
		rest = content[slash + 1 :]
		simple = _SIMPLE_ESCAPES.get(rest[:1])
		if simple is not None:
			out.append(simple)
			pos = slash + 2
			continue
		if rest[:1] == "x":
			match = _HEX_ESCAPE.match(rest)
			if match is None:
				raise _escape_error(tok, slash, len(rest[:3]) + 1, "invalid hex escape")
			value = int(match.group(1), 16)
			if value > 0x7F:
				raise _escape_error(tok, slash, match.end() + 1, "out of range hex escape")
		elif rest[:1] == "u":
			match = _UNICODE_ESCAPE.match(rest)
			if match is None:
				raise _escape_error(tok, slash, 2, "invalid unicode escape")
			digits = match.group(1).replace("_", "")
			value = int(digits, 16)
			if len(digits) > 6 or value > 0x10FFFF:
				raise _escape_error(tok, slash, match.end() + 1, "out of range unicode escape")
			if 0xD800 <= value <= 0xDFFF:
				raise _escape_error(tok, slash, match.end() + 1, "unicode escape must not be a surrogate")
		else:
			raise _escape_error(tok, slash, len(rest[:1]) + 1, "unknown character escape")
		out.append(chr(value))
		pos = slash + 1 + match.end()


def _build_link_file(tree: Tree) -> LinkFile:
	out = LinkFile()
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		kind = _name(child)
		if kind == "extern_block":
			out.blocks.append(_build_extern_block(child))
		elif kind == "type_alias":
			out.aliases.append(_build_type_alias(child))
	return out


def _build_type_alias(tree: Tree) -> TypeAlias:
	name_tok = next(child for child in tree.children if isinstance(child, Token) and child.type == "NAME")
	type_node = next(child for child in tree.children if isinstance(child, Tree))
	return TypeAlias(name=name_tok.value, type_expr=_build_type_expr(type_node), loc=_loc(tree))


def _build_extern_block(tree: Tree) -> ExternBlock:
	attributes: List[Attribute] = []
	items: List[BlockItem] = []
	abi: Optional[str] = None
	extern_loc = _loc(tree)
	for child in tree.children:
		if isinstance(child, Token):
			if child.type == "EXTERN":
				extern_loc = _loc(child)
			elif child.type == "STRING":
				abi = _decode_string_token(child)
			continue
		kind = _name(child)
		if kind == "attribute":
			attributes.append(_build_attribute(child))
		elif kind == "block_item":
			items.append(_build_block_item(child))
	return ExternBlock(abi=abi, items=items, loc=_loc(tree), extern_loc=extern_loc, attributes=attributes)


def _build_attribute(tree: Tree) -> Attribute:
	expr_node = next(child for child in tree.children if isinstance(child, Tree))
	return Attribute(expr=_build_expr(expr_node), loc=_loc(tree))


def _build_block_item(tree: Tree) -> BlockItem:
	attributes: List[Attribute] = []
	visibility: Optional[Visibility] = None
	item: Optional[BlockItem] = None
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		kind = _name(child)
		if kind == "attribute":
			attributes.append(_build_attribute(child))
		elif kind == "visibility":
			visibility = _build_visibility(child)
		elif kind == "fn_decl":
			item = _build_fn_decl(child)
		elif kind == "static_decl":
			item = _build_static_decl(child)
		elif kind == "opaque_type_decl":
			item = _build_opaque_type_decl(child)
	if item is None:
		raise ValueError("block item without a declaration")
	item.attributes = attributes
	item.visibility = visibility
	return item


def _build_visibility(tree: Tree) -> Visibility:
	scope = next((child for child in tree.children if isinstance(child, Tree)), None)
	if scope is None:
		return Visibility(text="pub", loc=_loc(tree))
	parts: List[str] = []
	for child in scope.children:
		if isinstance(child, Token):
			parts.append(child.value)
		else:
			parts.append("::".join(_path_segments(child)))
	return Visibility(text=f"pub({' '.join(parts)})", loc=_loc(tree))


def _build_fn_decl(tree: Tree) -> FnDecl:
	name_tok = next(child for child in tree.children if isinstance(child, Token) and child.type == "NAME")
	params: List[Param] = []
	ret: Optional[TypeExpr] = None
	terminated = False
	for child in tree.children:
		if isinstance(child, Token):
			if child.type == "SEMI":
				terminated = True
			continue
		kind = _name(child)
		if kind == "param_list":
			params = [_build_param(p) for p in child.children if isinstance(p, Tree)]
		elif kind == "ret_type":
			ret = _build_ret_type(child)
	return FnDecl(
		name=name_tok.value,
		params=params,
		ret=ret,
		loc=_loc(tree),
		name_loc=_loc(name_tok),
		terminated=terminated,
	)


def _build_static_decl(tree: Tree) -> StaticDecl:
	name_tok = next(child for child in tree.children if isinstance(child, Token) and child.type == "NAME")
	type_node = next(child for child in tree.children if isinstance(child, Tree))
	mutable = any(isinstance(child, Token) and child.type == "MUT" for child in tree.children)
	return StaticDecl(name=name_tok.value, type_expr=_build_type_expr(type_node), loc=_loc(tree), mutable=mutable)


def _build_opaque_type_decl(tree: Tree) -> OpaqueTypeDecl:
	name_tok = next(child for child in tree.children if isinstance(child, Token) and child.type == "NAME")
	return OpaqueTypeDecl(name=name_tok.value, loc=_loc(tree))


def _build_param(tree: Tree) -> Param:
	kind = _name(tree)
	if kind == "named_param":
		pattern = next(child for child in tree.children if isinstance(child, Tree) and _name(child) == "pattern")
		type_node = next(child for child in tree.children if isinstance(child, Tree) and _name(child) != "pattern")
		name_tok = next(child for child in pattern.children if isinstance(child, Token) and child.type in {"NAME", "UNDERSCORE"})
		mutable = any(isinstance(child, Token) and child.type == "MUT" for child in pattern.children)
		return NamedParam(
			name=None if name_tok.type == "UNDERSCORE" else name_tok.value,
			type_expr=_build_type_expr(type_node),
			loc=_loc(tree),
			mutable=mutable,
		)
	# Receivers are kept as text; they are rejected later with a span.
	words: List[str] = []
	for child in tree.children:
		if isinstance(child, Token):
			words.append(child.value)
		else:
			words.append(": " + _type_text(child))
	text = " ".join(words).replace("& ", "&").replace(" : ", ": ")
	return ReceiverParam(text=text, loc=_loc(tree))


def _build_ret_type(tree: Tree) -> TypeExpr:
	for child in tree.children:
		if isinstance(child, Token) and child.type == "BANG":
			return NeverType(loc=_loc(child))
		if isinstance(child, Tree):
			return _build_type_expr(child)
	raise ValueError("empty return type")


def _build_type_expr(tree: Tree) -> TypeExpr:
	kind = _name(tree)
	loc = _loc(tree)
	if kind == "ptr_type":
		mutable = any(isinstance(child, Token) and child.type == "MUT" for child in tree.children)
		inner = next(child for child in tree.children if isinstance(child, Tree))
		return PtrType(mutable=mutable, inner=_build_type_expr(inner), loc=loc)
	if kind == "ref_type":
		mutable = any(isinstance(child, Token) and child.type == "MUT" for child in tree.children)
		inner = next(child for child in tree.children if isinstance(child, Tree))
		return RefType(mutable=mutable, inner=_build_type_expr(inner), loc=loc)
	if kind == "array_type":
		inner = next(child for child in tree.children if isinstance(child, Tree))
		length_tok = next(child for child in tree.children if isinstance(child, Token) and child.type == "INT")
		return ArrayType(inner=_build_type_expr(inner), length=_parse_int(length_tok.value), loc=loc)
	if kind == "unit_type":
		return UnitType(loc=loc)
	if kind == "fn_type":
		abi: Optional[str] = None
		unsafe = False
		params: List[TypeExpr] = []
		ret: Optional[TypeExpr] = None
		for child in tree.children:
			if isinstance(child, Token):
				if child.type == "UNSAFE":
					unsafe = True
				elif child.type == "EXTERN" and abi is None:
					abi = "C"
				elif child.type == "STRING":
					abi = _decode_string_token(child)
				continue
			if _name(child) == "type_list":
				params = [_build_type_expr(p) for p in child.children if isinstance(p, Tree)]
			elif _name(child) == "ret_type":
				ret = _build_ret_type(child)
		return FnType(params=tuple(params), ret=ret, abi=abi, unsafe=unsafe, loc=loc)
	if kind == "path_type":
		path_node = next(child for child in tree.children if isinstance(child, Tree) and _name(child) == "path")
		args_node = next((child for child in tree.children if isinstance(child, Tree) and _name(child) == "type_args"), None)
		args = ()
		if args_node is not None:
			args = tuple(_build_type_expr(a) for a in args_node.children if isinstance(a, Tree))
		return PathType(path=_path_segments(path_node), args=args, loc=loc)
	raise ValueError(f"unexpected type node `{kind}`")


def _type_text(tree: Tree) -> str:
	return type_to_source(_build_type_expr(tree))


def _build_expr(tree: Tree) -> Expr:
	kind = _name(tree)
	loc = _loc(tree)
	if kind == "path_expr":
		path_node = next(child for child in tree.children if isinstance(child, Tree))
		return PathExpr(segments=_path_segments(path_node), loc=loc)
	if kind == "literal":
		return _build_literal(tree.children[0], loc)
	if kind == "assign_expr":
		left, right = [child for child in tree.children if isinstance(child, Tree)]
		return AssignExpr(left=_build_expr(left), right=_build_expr(right), loc=loc)
	if kind == "call_expr":
		trees = [child for child in tree.children if isinstance(child, Tree)]
		func = PathExpr(segments=_path_segments(trees[0]), loc=_loc(trees[0]))
		return CallExpr(func=func, args=tuple(_build_expr(arg) for arg in trees[1:]), loc=loc)
	raise ValueError(f"unexpected expression node `{kind}`")


def _build_literal(tok: Token, loc: Span) -> LitExpr:
	if tok.type == "STRING":
		return LitExpr(kind="str", value=_decode_string_token(tok), raw=tok.value, loc=loc)
	if tok.type == "INT":
		return LitExpr(kind="int", value=_parse_int(tok.value), raw=tok.value, loc=loc)
	if tok.type == "FLOAT":
		return LitExpr(kind="float", value=float(tok.value.replace("_", "")), raw=tok.value, loc=loc)
	return LitExpr(kind="bool", value=tok.type == "TRUE", raw=tok.value, loc=loc)


def _parse_int(raw: str) -> int:
	raw = raw.replace("_", "")
	if raw[:2] in ("0x", "0X"):
		return int(raw[2:], 16)
	return int(raw, 10)


def _path_segments(tree: Tree) -> tuple:
	return tuple(child.value for child in tree.children if isinstance(child, Token) and child.type == "NAME")


def _loc(node: Tree | Token) -> Span:
	return Span.from_node(node)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["StringEscapeError", "parse_annotation_expr", "parse_link_file"]
