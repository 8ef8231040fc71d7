# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Declaration types -> ctypes IR.

Primitive and `c_*` names map to their ctypes counterparts, pointers to
`POINTER(...)` (with the usual `c_void_p`/`c_char_p` shortcuts), and any
other named type is treated as an opaque handle (`c_void_p`) unless a
top-level `type Name = ...;` alias says otherwise.
"""

from __future__ import annotations

from typing import Mapping, Optional, Set

from lazylink.core.diagnostics import PHASE_CODEGEN, Diagnostic, DiagnosticError
from lazylink.parser.ast import (
	ArrayType,
	FnType,
	NeverType,
	PathType,
	PtrType,
	RefType,
	TypeExpr,
	UnitType,
	type_to_source,
)

from .ir import CPointer, CScalar, CType, CVoid

_SCALARS = {
	"i8": "c_int8",
	"u8": "c_uint8",
	"i16": "c_int16",
	"u16": "c_uint16",
	"i32": "c_int32",
	"u32": "c_uint32",
	"i64": "c_int64",
	"u64": "c_uint64",
	"isize": "c_ssize_t",
	"usize": "c_size_t",
	"f32": "c_float",
	"f64": "c_double",
	"bool": "c_bool",
	"char": "c_uint32",
	"c_char": "c_char",
	"c_schar": "c_byte",
	"c_uchar": "c_ubyte",
	"c_short": "c_short",
	"c_ushort": "c_ushort",
	"c_int": "c_int",
	"c_uint": "c_uint",
	"c_long": "c_long",
	"c_ulong": "c_ulong",
	"c_longlong": "c_longlong",
	"c_ulonglong": "c_ulonglong",
	"c_float": "c_float",
	"c_double": "c_double",
	"size_t": "c_size_t",
	"ssize_t": "c_ssize_t",
}

VOID_P = CScalar("c_void_p")
CHAR_P = CScalar("c_char_p")


class TypeMappingError(DiagnosticError):
	"""A declaration type with no ctypes rendering."""


def map_type(ty: TypeExpr, aliases: Optional[Mapping[str, TypeExpr]] = None, *, file: Optional[str] = None) -> CType:
	"""Map a parameter/return type; unit and `!` map to `CVoid`."""
	return _map(ty, aliases or {}, set(), file)


def map_param_type(ty: TypeExpr, aliases: Optional[Mapping[str, TypeExpr]] = None, *, file: Optional[str] = None) -> CType:
	mapped = map_type(ty, aliases, file=file)
	if isinstance(mapped, CVoid):
		raise _error(f"`{type_to_source(ty)}` is not a valid parameter type", ty, file)
	return mapped


def _map(ty: TypeExpr, aliases: Mapping[str, TypeExpr], visiting: Set[str], file: Optional[str]) -> CType:
	if isinstance(ty, (UnitType, NeverType)):
		return CVoid()
	if isinstance(ty, (PtrType, RefType)):
		return _pointer_to(_map(ty.inner, aliases, visiting, file))
	if isinstance(ty, ArrayType):
		# Arrays decay to a pointer to their first element at the C boundary.
		return _pointer_to(_map(ty.inner, aliases, visiting, file))
	if isinstance(ty, FnType):
		return VOID_P
	if isinstance(ty, PathType):
		return _map_path(ty, aliases, visiting, file)
	raise TypeError(f"unknown type node {type(ty).__name__}")


def _map_path(ty: PathType, aliases: Mapping[str, TypeExpr], visiting: Set[str], file: Optional[str]) -> CType:
	name = ty.name
	if len(ty.path) == 1 and name in aliases:
		if name in visiting:
			raise _error(f"type alias `{name}` refers to itself", ty, file)
		visiting.add(name)
		try:
			return _map(aliases[name], aliases, visiting, file)
		finally:
			visiting.discard(name)
	if name == "Option" and len(ty.args) == 1:
		# Nullable pointers/function pointers share the representation of the inner type.
		return _map(ty.args[0], aliases, visiting, file)
	if name == "c_void":
		return CVoid()
	scalar = _SCALARS.get(name)
	if scalar is not None and not ty.args:
		return CScalar(scalar)
	return VOID_P


def _pointer_to(target: CType) -> CType:
	if isinstance(target, CVoid):
		return VOID_P
	if target == CScalar("c_char"):
		return CHAR_P
	return CPointer(target)


def _error(message: str, ty: TypeExpr, file: Optional[str]) -> TypeMappingError:
	return TypeMappingError(
		Diagnostic(
			message=message,
			phase=PHASE_CODEGEN,
			span=ty.loc.with_file(file),
			found=type_to_source(ty),
		)
	)


__all__ = ["TypeMappingError", "map_param_type", "map_type"]
