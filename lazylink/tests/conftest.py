# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import threading
import time

import pytest

from lazylink import runtime
from lazylink.expand import expand_source


class CountingResolver:
	"""Resolver double: hands out Python callables and counts lookups."""

	def __init__(self, impls=None, *, delay: float = 0.0) -> None:
		self.impls = dict(impls or {})
		self.delay = delay
		self.calls = []
		self._lock = threading.Lock()

	def resolve(self, name, strategy):
		with self._lock:
			self.calls.append((name, strategy))
		if self.delay:
			time.sleep(self.delay)
		return self.impls.get(name)

	def count(self, name) -> int:
		with self._lock:
			return sum(1 for called, _ in self.calls if called == name)


@pytest.fixture
def install_resolver():
	"""Install a CountingResolver for one test; restores the previous one and clears handles."""
	previous = runtime.get_resolver()

	def _install(impls=None, *, delay: float = 0.0):
		resolver = CountingResolver(impls, delay=delay)
		runtime.set_resolver(resolver)
		return resolver

	yield _install
	runtime.set_resolver(previous)
	runtime.VULKAN_HANDLES.clear()


@pytest.fixture
def load_generated():
	"""Expand link source and exec the generated module into a fresh namespace."""

	def _load(src: str):
		result = expand_source(src, file="generated.link")
		assert not result.has_errors, [d.render() for d in result.diagnostics]
		ns = {"__name__": "generated"}
		exec(compile(result.source, "generated.py", "exec"), ns)
		return ns

	return _load
