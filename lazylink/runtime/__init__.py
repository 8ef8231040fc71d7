# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Runtime support imported by generated binding modules.

Every generated function is a `LazyBoundFn`: a callable cache cell that starts
out pointing at its trampoline and, after the first call, holds the resolved
foreign function. Resolution goes through the installed resolver
(`set_resolver`), which defaults to `CtypesResolver`.
"""

from __future__ import annotations

import ctypes
import logging
import sys
import threading
from typing import Callable, Optional, Sequence

from lazylink.strategy import LinkStrategy, Named, NamedAny, WellKnown, WellKnownApi

from .handles import VULKAN_HANDLES, HandleRegistry, deref_handle

logger = logging.getLogger(__name__)

_STDCALL_ABIS = frozenset({"system", "stdcall", "win64"})


class SymbolResolutionError(RuntimeError):
	def __init__(self, name: str, strategy: LinkStrategy, reason: str) -> None:
		self.name = name
		self.strategy = strategy
		self.reason = reason
		super().__init__(f"failed to resolve `{name}` ({strategy.describe()}): {reason}")


def prototype(abi: str, restype, argtypes: Sequence):
	"""ctypes function type for a declared ABI string."""
	if abi in _STDCALL_ABIS and sys.platform == "win32":
		return ctypes.WINFUNCTYPE(restype, *argtypes)
	return ctypes.CFUNCTYPE(restype, *argtypes)


class LazyBoundFn:
	"""
	Resolve-on-first-call function binding.

	`resolve_once` publishes the bound target with a single attribute store
	under a lock, so racing first callers run the resolver exactly once and
	all observe the same target. A failed resolution stores nothing.
	"""

	def __init__(
		self,
		name: str,
		prototype,
		trampoline: Callable,
		*,
		visibility: str = "",
		attributes: Sequence[str] = (),
		doc: Optional[str] = None,
		intercept: bool = False,
	) -> None:
		self.name = name
		self.__name__ = name
		self.__doc__ = doc
		self.prototype = prototype
		self.visibility = visibility
		self.attributes = tuple(attributes)
		self._trampoline = trampoline
		self._intercept = intercept
		self._lock = threading.Lock()
		self._target = None

	@property
	def resolved(self) -> bool:
		return self._target is not None

	def resolve_once(self, resolve: Callable[[], object]):
		target = self._target
		if target is not None:
			return target
		with self._lock:
			if self._target is None:
				self._target = self._bind(resolve())
				logger.debug("bound %s", self.name)
			return self._target

	def _bind(self, found):
		if isinstance(found, int):
			return self.prototype(found)
		if isinstance(found, ctypes._CFuncPtr):
			return ctypes.cast(found, self.prototype)
		if callable(found):
			return found
		raise TypeError(f"resolver returned {type(found).__name__} for `{self.name}`")

	def __call__(self, *args):
		target = self._target
		if target is None or self._intercept:
			return self._trampoline(*args)
		return target(*args)

	def __repr__(self) -> str:
		state = "bound" if self.resolved else "unbound"
		return f"<LazyBoundFn {self.name} {state}>"


_resolver = None
_resolver_lock = threading.Lock()


def get_resolver():
	global _resolver
	with _resolver_lock:
		if _resolver is None:
			from .resolver import CtypesResolver

			_resolver = CtypesResolver()
		return _resolver


def set_resolver(resolver):
	"""Install `resolver` (anything with `resolve(name, strategy)`); returns the previous one."""
	global _resolver
	with _resolver_lock:
		previous, _resolver = _resolver, resolver
	return previous


def resolve_symbol(name: str, strategy: LinkStrategy):
	"""Ask the installed resolver for `name`; raise if it finds nothing."""
	found = get_resolver().resolve(name, strategy)
	if found is None or (isinstance(found, int) and found == 0):
		raise SymbolResolutionError(name, strategy, "symbol not found")
	logger.debug("resolved %s via %s", name, strategy.describe())
	return found


__all__ = [
	"HandleRegistry",
	"LazyBoundFn",
	"Named",
	"NamedAny",
	"SymbolResolutionError",
	"VULKAN_HANDLES",
	"WellKnown",
	"WellKnownApi",
	"deref_handle",
	"get_resolver",
	"prototype",
	"resolve_symbol",
	"set_resolver",
]
