# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Link strategies: how a block of external functions is bound at run time.

A strategy is decided once per annotation and consumed by value afterwards.
The same classes are used by the generator (to print the strategy into the
generated module) and by the runtime resolvers (to pick a lookup procedure).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class WellKnownApi(str, Enum):
	"""APIs whose resolution procedure is intrinsic (no library name needed)."""

	VULKAN = "vulkan"
	OPENGL = "opengl"


_QUOTE_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t", "\0": "\\0"}


def quote_str(value: str) -> str:
	"""Quote `value` as a link-file string literal that decodes back to `value`."""
	out = []
	for ch in value:
		escaped = _QUOTE_ESCAPES.get(ch)
		if escaped is None and (ord(ch) < 0x20 or ord(ch) == 0x7F):
			escaped = f"\\u{{{ord(ch):x}}}"
		out.append(ch if escaped is None else escaped)
	return '"' + "".join(out) + '"'


@dataclass(frozen=True)
class WellKnown:
	api: WellKnownApi

	def candidates(self) -> Tuple[str, ...]:
		return ()

	def describe(self) -> str:
		return self.api.value


@dataclass(frozen=True)
class Named:
	library: str

	def candidates(self) -> Tuple[str, ...]:
		return (self.library,)

	def describe(self) -> str:
		return f"name = {quote_str(self.library)}"


@dataclass(frozen=True)
class NamedAny:
	"""Ordered candidate libraries; the first one that resolves wins."""

	libraries: Tuple[str, ...]

	def __post_init__(self) -> None:
		if not self.libraries:
			raise ValueError("NamedAny requires at least one library")
		# Accept any sequence but keep the value hashable.
		object.__setattr__(self, "libraries", tuple(self.libraries))

	def candidates(self) -> Tuple[str, ...]:
		return self.libraries

	def describe(self) -> str:
		inner = ", ".join(f"name = {quote_str(lib)}" for lib in self.libraries)
		return f"any({inner})"


LinkStrategy = Union[WellKnown, Named, NamedAny]

WELL_KNOWN_KEYWORDS = {api.value: api for api in WellKnownApi}


def is_vulkan(strategy: LinkStrategy) -> bool:
	return isinstance(strategy, WellKnown) and strategy.api is WellKnownApi.VULKAN


__all__ = [
	"LinkStrategy",
	"Named",
	"NamedAny",
	"WELL_KNOWN_KEYWORDS",
	"WellKnown",
	"WellKnownApi",
	"is_vulkan",
	"quote_str",
]
