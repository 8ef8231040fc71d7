# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Wrapper synthesis: (strategy, signature, trampoline id) -> GeneratedUnit.

The cache cell takes the declared function's name; the trampoline takes the
allocated id and stays out of `__all__`. The trampoline resolves exactly once
through the cell, forwards its arguments unchanged and returns the result.
"""

from __future__ import annotations

import keyword
from dataclasses import replace
from typing import List, Mapping, Optional, Set, Tuple

from lazylink.core.diagnostics import PHASE_CODEGEN, Diagnostic
from lazylink.declarations import FunctionSignature
from lazylink.ids import RESERVED_NAMES
from lazylink.parser.ast import TypeExpr
from lazylink.strategy import LinkStrategy

from . import special_cases
from .ctypes_map import map_param_type, map_type
from .ir import (
	CacheCell,
	CVoid,
	ForwardCall,
	GeneratedUnit,
	Prototype,
	ResolveOnce,
	Return,
	Trampoline,
)


def synthesize(
	strategy: LinkStrategy,
	signature: FunctionSignature,
	trampoline_id: str,
	*,
	link_ref: str,
	aliases: Optional[Mapping[str, TypeExpr]] = None,
	file: Optional[str] = None,
) -> Tuple[GeneratedUnit, List[Diagnostic]]:
	"""
	Build the cell/trampoline pair for one declaration.

	Raises `TypeMappingError` when a parameter or return type has no ctypes
	rendering; the caller drops the function and reports the diagnostic.
	"""
	diags: List[Diagnostic] = []
	prototype = Prototype(
		abi=signature.abi,
		restype=map_type(signature.return_type, aliases, file=file) if signature.return_type is not None else CVoid(),
		argtypes=tuple(map_param_type(p.type_expr, aliases, file=file) for p in signature.params),
	)
	params = python_param_names(signature, taken={signature.name, link_ref})
	trampoline = Trampoline(
		id=trampoline_id,
		params=params,
		body=(
			ResolveOnce(symbol=signature.name, cell=signature.name, link_ref=link_ref),
			ForwardCall(args=params),
			Return(),
		),
	)
	cell = CacheCell(
		name=signature.name,
		trampoline_id=trampoline_id,
		prototype=prototype,
		visibility=signature.visibility,
		attributes=signature.attributes,
		doc=signature.doc,
	)

	hook = special_cases.hook_for(strategy, signature.name)
	if hook is not None:
		tracked = special_cases.inject(strategy, signature, trampoline)
		if tracked is None:
			diags.append(
				Diagnostic(
					message=f"`{signature.name}` declares {len(params)} parameter(s); handle tracking skipped",
					phase=PHASE_CODEGEN,
					severity="warning",
					span=signature.span,
					expected=f"at least {hook.param_index + 1} parameter(s)",
				)
			)
		else:
			trampoline = tracked
			cell = replace(cell, intercept=True)

	return GeneratedUnit(cache_cell=cell, trampoline=trampoline, signature=signature, strategy=strategy), diags


def python_param_names(signature: FunctionSignature, *, taken: Set[str]) -> Tuple[str, ...]:
	"""
	Declared parameter names, suffixed with `_` where they would clash with a
	Python keyword or a name the trampoline body refers to.
	"""
	blocked = set(taken) | set(RESERVED_NAMES)
	out: List[str] = []
	for name in signature.param_names:
		candidate = name
		while keyword.iskeyword(candidate) or candidate in blocked or candidate in out:
			candidate += "_"
		out.append(candidate)
	return tuple(out)


__all__ = ["python_param_names", "synthesize"]
