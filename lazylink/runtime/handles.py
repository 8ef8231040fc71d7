# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Live Vulkan instance/device handles.

Generated lifecycle trampolines register handles after `vkCreate*` succeeds
and unregister them on `vkDestroy*`; the Vulkan resolver walks them to find
command addresses.
"""

from __future__ import annotations

import ctypes
import logging
import threading
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

TABLES = ("instance", "device")


def deref_handle(out_param) -> Optional[int]:
	"""
	Read the handle an output pointer now holds.

	Accepts `POINTER(c_void_p)`, `byref(c_void_p(...))`, a bare `c_void_p`
	or an int; returns None for a null handle.
	"""
	value = out_param
	if isinstance(value, ctypes._Pointer):
		value = value.contents
	elif type(value).__name__ == "CArgObject":
		value = value._obj
	if isinstance(value, ctypes._SimpleCData):
		value = value.value
	if value is None:
		return None
	if not isinstance(value, int):
		raise TypeError(f"cannot read a handle from {type(out_param).__name__}")
	return value or None


class HandleRegistry:
	"""Insertion-ordered handle sets keyed by table name."""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._tables: Dict[str, Dict[int, None]] = {name: {} for name in TABLES}

	def _table(self, table: str) -> Dict[int, None]:
		try:
			return self._tables[table]
		except KeyError:
			raise ValueError(f"unknown handle table {table!r}") from None

	def register(self, table: str, handle) -> None:
		value = _as_int(handle)
		if value is None:
			return
		with self._lock:
			self._table(table)[value] = None
		logger.debug("registered %s handle 0x%x", table, value)

	def unregister(self, table: str, handle) -> None:
		value = _as_int(handle)
		if value is None:
			return
		with self._lock:
			self._table(table).pop(value, None)
		logger.debug("unregistered %s handle 0x%x", table, value)

	def handles(self, table: str) -> List[int]:
		with self._lock:
			return list(self._table(table))

	def clear(self) -> None:
		with self._lock:
			for handles in self._tables.values():
				handles.clear()


def _as_int(handle) -> Optional[int]:
	if handle is None:
		return None
	if isinstance(handle, ctypes._SimpleCData):
		handle = handle.value
	if not handle:
		return None
	return int(handle)


VULKAN_HANDLES = HandleRegistry()


__all__ = ["HandleRegistry", "TABLES", "VULKAN_HANDLES", "deref_handle"]
