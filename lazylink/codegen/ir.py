# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Typed IR for generated bindings.

A `GeneratedUnit` is one cache cell plus its trampoline. Trampoline bodies are
short statement lists so rewrites (lifecycle tracking) are structural edits,
and the printer is the only place that knows Python syntax.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from lazylink.declarations import FunctionSignature
from lazylink.strategy import LinkStrategy


# ---- ctypes types ----


@dataclass(frozen=True)
class CScalar:
	"""A ctypes attribute such as `c_int32` or `c_void_p`."""

	name: str


@dataclass(frozen=True)
class CPointer:
	target: "CType"


@dataclass(frozen=True)
class CVoid:
	pass


CType = Union[CScalar, CPointer, CVoid]


@dataclass(frozen=True)
class Prototype:
	abi: str
	restype: CType
	argtypes: Tuple[CType, ...]


# ---- trampoline statements ----


@dataclass(frozen=True)
class ResolveOnce:
	"""Resolve `symbol` under the block's strategy and publish it in `cell`."""

	symbol: str
	cell: str
	link_ref: str


@dataclass(frozen=True)
class ForwardCall:
	args: Tuple[str, ...]


@dataclass(frozen=True)
class TrackHandle:
	"""Register/unregister a handle in the runtime lifecycle table."""

	table: str  # "instance" | "device"
	action: str  # "register" | "unregister"
	param: str
	index: int
	via_pointer: bool


@dataclass(frozen=True)
class Return:
	pass


Stmt = Union[ResolveOnce, ForwardCall, TrackHandle, Return]


# ---- definitions ----


@dataclass(frozen=True)
class Trampoline:
	id: str
	params: Tuple[str, ...]
	body: Tuple[Stmt, ...]


@dataclass(frozen=True)
class CacheCell:
	name: str
	trampoline_id: str
	prototype: Prototype
	visibility: str = ""
	attributes: Tuple[str, ...] = ()
	doc: Optional[str] = None
	# Route every call through the trampoline (it carries per-call bookkeeping).
	intercept: bool = False


@dataclass(frozen=True)
class GeneratedUnit:
	cache_cell: CacheCell
	trampoline: Trampoline
	signature: FunctionSignature
	strategy: LinkStrategy

	@property
	def cache_cell_id(self) -> str:
		return self.cache_cell.name

	@property
	def trampoline_id(self) -> str:
		return self.trampoline.id


@dataclass(frozen=True)
class LinkConst:
	"""Module-level constant holding one block's strategy."""

	ref: str
	strategy: LinkStrategy


@dataclass
class ModuleIR:
	source_file: Optional[str] = None
	links: List[LinkConst] = field(default_factory=list)
	units: List[GeneratedUnit] = field(default_factory=list)

	@property
	def exported(self) -> List[str]:
		names: List[str] = []
		for unit in self.units:
			if unit.cache_cell.visibility == "pub" and unit.cache_cell_id not in names:
				names.append(unit.cache_cell_id)
		return names


__all__ = [
	"CacheCell",
	"CPointer",
	"CScalar",
	"CType",
	"CVoid",
	"ForwardCall",
	"GeneratedUnit",
	"LinkConst",
	"ModuleIR",
	"Prototype",
	"ResolveOnce",
	"Return",
	"Stmt",
	"TrackHandle",
	"Trampoline",
]
