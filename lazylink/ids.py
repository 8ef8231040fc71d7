# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Identifier allocation for generated definitions.

One `IdentifierAllocator` belongs to one compilation and is passed explicitly
to every synthesis step. Ids are minted under a lock so overlapping
expansions sharing an allocator never observe the same number.
"""

from __future__ import annotations

import itertools
import keyword
import threading
from typing import Iterator

TRAMPOLINE_PREFIX = "__initializer_"
LINK_PREFIX = "_LINK_"
RUNTIME_ALIAS = "_rt"

# Names the generated module defines for itself (module level and trampoline locals).
RESERVED_NAMES = frozenset({"ctypes", RUNTIME_ALIAS, "__all__", "_target", "_result"})


class IdentifierAllocator:
	"""Strictly increasing, never reused trampoline names."""

	def __init__(self, start: int = 0, *, prefix: str = TRAMPOLINE_PREFIX) -> None:
		self._counter: Iterator[int] = itertools.count(start)
		self._lock = threading.Lock()
		self._prefix = prefix
		self._issued = 0

	def next_index(self) -> int:
		with self._lock:
			self._issued += 1
			return next(self._counter)

	def next(self) -> str:
		return f"{self._prefix}{self.next_index()}"

	@property
	def issued(self) -> int:
		"""How many ids have been handed out so far."""
		return self._issued


def is_reserved_name(name: str) -> bool:
	"""True for names a declared function may not take in the generated module."""
	if name in RESERVED_NAMES or keyword.iskeyword(name):
		return True
	if name.startswith(TRAMPOLINE_PREFIX) or name.startswith(LINK_PREFIX):
		return True
	return name.startswith("__") and name.endswith("__")


__all__ = [
	"IdentifierAllocator",
	"LINK_PREFIX",
	"RESERVED_NAMES",
	"RUNTIME_ALIAS",
	"TRAMPOLINE_PREFIX",
	"is_reserved_name",
]
