# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Declaration parsing: one extern block -> (abi, [FunctionSignature]).

Problems with a single declaration are isolated: the offending function (or
non-function item) is dropped with a diagnostic and the rest of the block
still expands. Only a missing ABI string aborts the whole block, since every
function shares it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from lazylink.core.diagnostics import PHASE_DECLARATION, Diagnostic
from lazylink.core.span import Span
from lazylink.ids import is_reserved_name
from lazylink.parser.ast import (
	AssignExpr,
	Attribute,
	ExternBlock,
	FnDecl,
	LitExpr,
	NamedParam,
	OpaqueTypeDecl,
	PathExpr,
	ReceiverParam,
	StaticDecl,
	TypeExpr,
)


@dataclass(frozen=True)
class SigParam:
	name: str
	type_expr: TypeExpr
	# True when the source used `_` and the name was assigned by position.
	synthesized: bool = False


@dataclass(frozen=True)
class FunctionSignature:
	"""A declared external function, normalized for synthesis."""

	name: str
	visibility: str
	attributes: Tuple[str, ...]
	abi: str
	params: Tuple[SigParam, ...]
	return_type: Optional[TypeExpr]
	span: Span = field(default_factory=Span, compare=False)
	doc: Optional[str] = None

	@property
	def is_public(self) -> bool:
		return self.visibility == "pub"

	@property
	def param_names(self) -> Tuple[str, ...]:
		return tuple(p.name for p in self.params)


@dataclass
class DeclarationResult:
	abi: Optional[str]
	signatures: List[FunctionSignature] = field(default_factory=list)
	diagnostics: List[Diagnostic] = field(default_factory=list)


def parse_extern_block(block: ExternBlock, *, file: Optional[str] = None) -> DeclarationResult:
	"""Validate `block` and normalize its function prototypes."""
	if block.abi is None:
		return DeclarationResult(
			abi=None,
			diagnostics=[
				_diag(
					"missing ABI string after `extern`",
					block.extern_loc,
					file,
					expected='`extern "<abi>"`',
					found="extern",
				)
			],
		)
	result = DeclarationResult(abi=block.abi)
	seen: Set[str] = set()
	for item in block.items:
		if isinstance(item, StaticDecl):
			result.diagnostics.append(_non_function(f"static {item.name}", item.loc, file))
			continue
		if isinstance(item, OpaqueTypeDecl):
			result.diagnostics.append(_non_function(f"type {item.name}", item.loc, file))
			continue
		duplicate = item.name in seen
		seen.add(item.name)
		sig, diags = _parse_fn_decl(item, block.abi, file=file)
		if duplicate:
			diags.insert(
				0,
				_diag(
					f"duplicate function `{item.name}` in extern block",
					item.name_loc,
					file,
					found=item.name,
				),
			)
			sig = None
		result.diagnostics.extend(diags)
		if sig is not None:
			result.signatures.append(sig)
	return result


def _parse_fn_decl(decl: FnDecl, abi: str, *, file: Optional[str]) -> Tuple[Optional[FunctionSignature], List[Diagnostic]]:
	diags: List[Diagnostic] = []
	if is_reserved_name(decl.name):
		diags.append(
			_diag(
				f"function name `{decl.name}` is reserved in the generated module",
				decl.name_loc,
				file,
				found=decl.name,
			)
		)
	params: List[SigParam] = []
	names: Set[str] = set()
	has_wildcards = any(isinstance(p, NamedParam) and p.name is None for p in decl.params)
	for index, param in enumerate(decl.params):
		if isinstance(param, ReceiverParam):
			diags.append(
				_diag(
					"receiver arguments are unsupported",
					param.loc,
					file,
					expected="`<name>: <type>`",
					found=param.text,
				)
			)
			continue
		if not isinstance(param, NamedParam):
			raise TypeError(f"unknown parameter node {type(param).__name__}")
		synthesized = param.name is None
		name = f"p{index}" if param.name is None else param.name
		if name in names:
			note = ["anonymous parameters are named `p<index>` by position"] if has_wildcards else []
			diags.append(
				_diag(f"duplicate parameter name `{name}`", param.loc, file, found=name, notes=note)
			)
			continue
		names.add(name)
		params.append(SigParam(name=name, type_expr=param.type_expr, synthesized=synthesized))
	if not decl.terminated:
		diags.append(
			_diag(
				f"missing `;` after declaration of `{decl.name}`",
				decl.loc,
				file,
				expected="`;`",
			)
		)
	if diags:
		return None, diags
	return (
		FunctionSignature(
			name=decl.name,
			visibility=decl.visibility.text if decl.visibility is not None else "",
			attributes=tuple(attr.text for attr in decl.attributes),
			abi=abi,
			params=tuple(params),
			return_type=decl.ret,
			span=decl.loc.with_file(file),
			doc=_doc_text(decl.attributes),
		),
		diags,
	)


def _doc_text(attributes: List[Attribute]) -> Optional[str]:
	"""Join `doc = "..."` attributes (one per line) into a docstring."""
	lines: List[str] = []
	for attr in attributes:
		expr = attr.expr
		if (
			isinstance(expr, AssignExpr)
			and isinstance(expr.left, PathExpr)
			and expr.left.ident == "doc"
			and isinstance(expr.right, LitExpr)
			and expr.right.kind == "str"
		):
			lines.append(str(expr.right.value).strip())
	if not lines:
		return None
	return "\n".join(lines)


def _non_function(found: str, loc: Span, file: Optional[str]) -> Diagnostic:
	return _diag(
		"only function declarations are supported inside an extern block",
		loc,
		file,
		expected="`fn <name>(...);`",
		found=found,
	)


def _diag(
	message: str,
	loc: Span,
	file: Optional[str],
	*,
	expected: Optional[str] = None,
	found: Optional[str] = None,
	notes: Optional[List[str]] = None,
) -> Diagnostic:
	return Diagnostic(
		message=message,
		phase=PHASE_DECLARATION,
		span=loc.with_file(file),
		expected=expected,
		found=found,
		notes=list(notes or []),
	)


__all__ = ["DeclarationResult", "FunctionSignature", "SigParam", "parse_extern_block"]
