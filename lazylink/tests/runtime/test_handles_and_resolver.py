#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Handle registry and the default ctypes resolver (with a fake loader)."""

import ctypes

import pytest

from lazylink.runtime import SymbolResolutionError
from lazylink.runtime.handles import HandleRegistry, deref_handle
from lazylink.runtime.resolver import CtypesResolver, library_candidates
from lazylink.strategy import Named, NamedAny


def test_deref_handle_accepts_pointer_byref_and_int():
	handle = ctypes.c_void_p(0xBEEF)
	assert deref_handle(ctypes.pointer(handle)) == 0xBEEF
	assert deref_handle(ctypes.byref(handle)) == 0xBEEF
	assert deref_handle(handle) == 0xBEEF
	assert deref_handle(0xBEEF) == 0xBEEF
	assert deref_handle(ctypes.pointer(ctypes.c_void_p())) is None


def test_registry_register_unregister_and_nulls():
	reg = HandleRegistry()
	reg.register("instance", 1)
	reg.register("instance", ctypes.c_void_p(2))
	reg.register("instance", None)
	reg.register("device", 0)
	assert reg.handles("instance") == [1, 2]
	assert reg.handles("device") == []
	reg.unregister("instance", 1)
	reg.unregister("instance", 99)
	assert reg.handles("instance") == [2]
	with pytest.raises(ValueError):
		reg.register("queue", 5)


def test_library_candidates_keep_explicit_paths():
	assert library_candidates("/opt/lib/libfoo.so.1") == ["/opt/lib/libfoo.so.1"]
	assert library_candidates("libfoo.so.1") == ["libfoo.so.1"]
	assert library_candidates("foo")[-1] == "foo"


class _FakeLib:
	def __init__(self, exports):
		self._exports = exports

	def __getattr__(self, name):
		try:
			return self._exports[name]
		except KeyError:
			raise AttributeError(name) from None


def _cfunc(fn):
	return ctypes.CFUNCTYPE(ctypes.c_int32, ctypes.c_int32)(fn)


def test_named_any_falls_through_to_first_loadable():
	keep = _cfunc(lambda x: x)
	libs = {"libbar.so": _FakeLib({"bar_get": keep})}
	loaded = []

	def loader(path):
		loaded.append(path)
		if path not in libs:
			raise OSError(path)
		return libs[path]

	resolver = CtypesResolver(loader=loader)
	addr = resolver.resolve("bar_get", NamedAny(("/nope/libmissing.so", "libbar.so")))
	assert addr == ctypes.cast(keep, ctypes.c_void_p).value
	assert loaded == ["/nope/libmissing.so", "libbar.so"]
	# Libraries are loaded once and cached, including failures.
	resolver.resolve("bar_get", NamedAny(("/nope/libmissing.so", "libbar.so")))
	assert loaded == ["/nope/libmissing.so", "libbar.so"]


def test_missing_export_is_none():
	resolver = CtypesResolver(loader=lambda path: _FakeLib({}))
	assert resolver.resolve("nothing", Named("libbar.so")) is None


def test_resolution_error_names_function_and_strategy():
	err = SymbolResolutionError("foo", Named("foo"), "symbol not found")
	assert str(err) == 'failed to resolve `foo` (name = "foo"): symbol not found'
