# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Default symbol resolver built on ctypes.

- `Named` / `NamedAny`: load each candidate library in order and return the
  first exported address.
- `WellKnown(VULKAN)`: ask `vkGetDeviceProcAddr` for every tracked device,
  then `vkGetInstanceProcAddr` for every tracked instance, then for the null
  instance (global commands), then the loader's own exports.
- `WellKnown(OPENGL)`: `wglGetProcAddress` / `glXGetProcAddressARB`, then the
  GL library's exports.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import sys
import threading
from typing import Dict, Iterable, List, Optional

from lazylink.strategy import LinkStrategy, WellKnown, WellKnownApi

from .handles import VULKAN_HANDLES, HandleRegistry

logger = logging.getLogger(__name__)

_PROC_ADDR = ctypes.CFUNCTYPE(ctypes.c_void_p, ctypes.c_void_p, ctypes.c_char_p)
_GL_PROC_ADDR = ctypes.CFUNCTYPE(ctypes.c_void_p, ctypes.c_char_p)

if sys.platform == "win32":
	_VULKAN_LIBS = ("vulkan-1",)
	_OPENGL_LIBS = ("opengl32",)
elif sys.platform == "darwin":
	_VULKAN_LIBS = ("libvulkan.1.dylib", "vulkan", "MoltenVK")
	_OPENGL_LIBS = ("/System/Library/Frameworks/OpenGL.framework/OpenGL", "OpenGL")
else:
	_VULKAN_LIBS = ("libvulkan.so.1", "vulkan")
	_OPENGL_LIBS = ("libGL.so.1", "GL")


def library_candidates(name: str) -> List[str]:
	"""File names worth trying for a library name, most specific first."""
	if os.sep in name or "/" in name or any(ext in name for ext in (".so", ".dll", ".dylib")):
		return [name]
	out: List[str] = []
	found = ctypes.util.find_library(name)
	if found:
		out.append(found)
	if sys.platform == "win32":
		out.append(f"{name}.dll")
	elif sys.platform == "darwin":
		out.extend([f"lib{name}.dylib", f"{name}.framework/{name}"])
	else:
		out.append(f"lib{name}.so")
	out.append(name)
	return out


def export_address(lib, name: str) -> Optional[int]:
	try:
		fn = getattr(lib, name)
	except AttributeError:
		return None
	return ctypes.cast(fn, ctypes.c_void_p).value


class CtypesResolver:
	def __init__(self, *, loader=ctypes.CDLL, handles: HandleRegistry = VULKAN_HANDLES) -> None:
		self._loader = loader
		self._handles = handles
		self._lock = threading.Lock()
		self._libs: Dict[str, object] = {}

	def resolve(self, name: str, strategy: LinkStrategy) -> Optional[int]:
		if isinstance(strategy, WellKnown):
			if strategy.api is WellKnownApi.VULKAN:
				return self._resolve_vulkan(name)
			return self._resolve_opengl(name)
		return self._resolve_exports(name, strategy.candidates())

	def load(self, library: str):
		"""Load (and cache) the first loadable file for `library`, or None."""
		with self._lock:
			if library in self._libs:
				return self._libs[library]
			lib = None
			for candidate in library_candidates(library):
				try:
					lib = self._loader(candidate)
				except OSError:
					continue
				logger.debug("loaded %s as %s", library, candidate)
				break
			self._libs[library] = lib
			return lib

	def _resolve_exports(self, name: str, libraries: Iterable[str]) -> Optional[int]:
		for library in libraries:
			lib = self.load(library)
			if lib is None:
				logger.debug("library %s not loadable", library)
				continue
			addr = export_address(lib, name)
			if addr:
				return addr
		return None

	def _first_loaded(self, libraries: Iterable[str]):
		for library in libraries:
			lib = self.load(library)
			if lib is not None:
				return lib
		return None

	def _resolve_vulkan(self, name: str) -> Optional[int]:
		loader = self._first_loaded(_VULKAN_LIBS)
		if loader is None:
			return None
		get_instance_addr = export_address(loader, "vkGetInstanceProcAddr")
		if not get_instance_addr:
			return export_address(loader, name)
		gipa = _PROC_ADDR(get_instance_addr)
		symbol = name.encode("ascii")
		devices = self._handles.handles("device")
		if devices:
			gdpa_addr = export_address(loader, "vkGetDeviceProcAddr")
			if gdpa_addr:
				gdpa = _PROC_ADDR(gdpa_addr)
				for device in devices:
					addr = gdpa(device, symbol)
					if addr:
						return addr
		for instance in self._handles.handles("instance"):
			addr = gipa(instance, symbol)
			if addr:
				return addr
		addr = gipa(None, symbol)
		if addr:
			return addr
		return export_address(loader, name)

	def _resolve_opengl(self, name: str) -> Optional[int]:
		lib = self._first_loaded(_OPENGL_LIBS)
		if lib is None:
			return None
		symbol = name.encode("ascii")
		for getter in ("wglGetProcAddress", "glXGetProcAddressARB", "glXGetProcAddress"):
			getter_addr = export_address(lib, getter)
			if not getter_addr:
				continue
			addr = _GL_PROC_ADDR(getter_addr)(symbol)
			# wgl reports some failures as small sentinel values rather than null.
			if addr and addr not in (1, 2, 3, 0xFFFFFFFF, 0xFFFFFFFFFFFFFFFF):
				return addr
		return export_address(lib, name)


__all__ = ["CtypesResolver", "export_address", "library_candidates"]
