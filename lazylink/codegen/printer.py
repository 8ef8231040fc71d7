# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Render ModuleIR as Python source (and as a compact IR dump for `--dump-ir`).
"""

from __future__ import annotations

import json
from typing import List

from lazylink.ids import RUNTIME_ALIAS
from lazylink.strategy import LinkStrategy, Named, NamedAny, WellKnown

from .ir import (
	CacheCell,
	CPointer,
	CScalar,
	CType,
	CVoid,
	ForwardCall,
	GeneratedUnit,
	ModuleIR,
	Prototype,
	ResolveOnce,
	Return,
	Stmt,
	TrackHandle,
	Trampoline,
)

DEFAULT_RUNTIME_MODULE = "lazylink.runtime"
DEFAULT_INDENT = "    "


def str_lit(value: str) -> str:
	return json.dumps(value)


def format_ctype(ty: CType) -> str:
	if isinstance(ty, CVoid):
		return "None"
	if isinstance(ty, CScalar):
		return f"ctypes.{ty.name}"
	if isinstance(ty, CPointer):
		return f"ctypes.POINTER({format_ctype(ty.target)})"
	return "<invalid ctype>"


def format_tuple(items: List[str]) -> str:
	if len(items) == 1:
		return f"({items[0]},)"
	return f"({', '.join(items)})"


def format_strategy(strategy: LinkStrategy) -> str:
	if isinstance(strategy, WellKnown):
		return f"{RUNTIME_ALIAS}.WellKnown({RUNTIME_ALIAS}.WellKnownApi.{strategy.api.name})"
	if isinstance(strategy, Named):
		return f"{RUNTIME_ALIAS}.Named({str_lit(strategy.library)})"
	if isinstance(strategy, NamedAny):
		libs = format_tuple([str_lit(lib) for lib in strategy.libraries])
		return f"{RUNTIME_ALIAS}.NamedAny({libs})"
	return "<invalid strategy>"


def format_prototype(proto: Prototype) -> str:
	args = format_tuple([format_ctype(t) for t in proto.argtypes])
	return f"{RUNTIME_ALIAS}.prototype({str_lit(proto.abi)}, {format_ctype(proto.restype)}, {args})"


def format_stmt(stmt: Stmt) -> str:
	if isinstance(stmt, ResolveOnce):
		return (
			f"_target = {stmt.cell}.resolve_once("
			f"lambda: {RUNTIME_ALIAS}.resolve_symbol({str_lit(stmt.symbol)}, {stmt.link_ref}))"
		)
	if isinstance(stmt, ForwardCall):
		return f"_result = _target({', '.join(stmt.args)})"
	if isinstance(stmt, TrackHandle):
		handle = f"{RUNTIME_ALIAS}.deref_handle({stmt.param})" if stmt.via_pointer else stmt.param
		return f"{RUNTIME_ALIAS}.VULKAN_HANDLES.{stmt.action}({str_lit(stmt.table)}, {handle})"
	if isinstance(stmt, Return):
		return "return _result"
	return "pass  # <invalid stmt>"


def format_trampoline(tramp: Trampoline, indent: str = DEFAULT_INDENT) -> str:
	lines = [f"def {tramp.id}({', '.join(tramp.params)}):"]
	for stmt in tramp.body:
		lines.append(f"{indent}{format_stmt(stmt)}")
	return "\n".join(lines)


def format_cell(cell: CacheCell, indent: str = DEFAULT_INDENT) -> str:
	args = [
		str_lit(cell.name),
		format_prototype(cell.prototype),
		cell.trampoline_id,
		f"visibility={str_lit(cell.visibility)}",
	]
	if cell.attributes:
		args.append(f"attributes={format_tuple([str_lit(a) for a in cell.attributes])}")
	if cell.doc is not None:
		args.append(f"doc={str_lit(cell.doc)}")
	if cell.intercept:
		args.append("intercept=True")
	lines = [f"{cell.name} = {RUNTIME_ALIAS}.LazyBoundFn("]
	lines.extend(f"{indent}{arg}," for arg in args)
	lines.append(")")
	return "\n".join(lines)


def format_unit(unit: GeneratedUnit, indent: str = DEFAULT_INDENT) -> str:
	return f"{format_trampoline(unit.trampoline, indent)}\n\n\n{format_cell(unit.cache_cell, indent)}"


def render_module(
	module: ModuleIR,
	*,
	runtime_module: str = DEFAULT_RUNTIME_MODULE,
	indent: str = DEFAULT_INDENT,
	header: bool = True,
) -> str:
	"""Whole generated module; output is deterministic for a given ModuleIR."""
	parts: List[str] = []
	if header:
		origin = f" from {module.source_file}" if module.source_file else ""
		parts.append(f"# Generated by lazylink{origin}. Do not edit.")
	imports = ["import ctypes", "", f"import {runtime_module} as {RUNTIME_ALIAS}"]
	parts.append("\n".join(imports))
	exported = module.exported
	if exported:
		names = "\n".join(f"{indent}{str_lit(name)}," for name in exported)
		parts.append(f"__all__ = [\n{names}\n]")
	else:
		parts.append("__all__ = []")
	if module.links:
		parts.append("\n".join(f"{link.ref} = {format_strategy(link.strategy)}" for link in module.links))
	body = "\n\n\n".join(format_unit(unit, indent) for unit in module.units)
	out = "\n\n".join(parts)
	if body:
		out += "\n\n\n" + body
	return out + "\n"


def dump_ir(module: ModuleIR) -> str:
	"""Compact textual IR, one unit per paragraph."""
	lines: List[str] = []
	for link in module.links:
		lines.append(f"link {link.ref} = {link.strategy.describe()}")
	for unit in module.units:
		cell = unit.cache_cell
		proto = cell.prototype
		args = ", ".join(format_ctype(t) for t in proto.argtypes)
		flags = " intercept" if cell.intercept else ""
		vis = f"{cell.visibility} " if cell.visibility else ""
		lines.append("")
		lines.append(
			f"{vis}cell {cell.name}: extern {str_lit(proto.abi)} ({args}) -> {format_ctype(proto.restype)}"
			f" via {cell.trampoline_id}{flags}"
		)
		lines.append(f"  {unit.trampoline.id}({', '.join(unit.trampoline.params)}):")
		for stmt in unit.trampoline.body:
			lines.append(f"    {_dump_stmt(stmt)}")
	return "\n".join(lines) + "\n"


def _dump_stmt(stmt: Stmt) -> str:
	if isinstance(stmt, ResolveOnce):
		return f"resolve_once {stmt.symbol} using {stmt.link_ref}"
	if isinstance(stmt, ForwardCall):
		return f"forward({', '.join(stmt.args)})"
	if isinstance(stmt, TrackHandle):
		how = "*" if stmt.via_pointer else ""
		return f"{stmt.action} {stmt.table} {how}{stmt.param}"
	if isinstance(stmt, Return):
		return "return"
	return "<invalid stmt>"


__all__ = [
	"dump_ir",
	"format_cell",
	"format_ctype",
	"format_stmt",
	"format_strategy",
	"format_trampoline",
	"format_unit",
	"render_module",
	"str_lit",
]
