# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Vulkan lifecycle hooks.

Vulkan commands are looked up through `vkGet{Instance,Device}ProcAddr`, which
need a live instance/device handle. The four lifecycle commands below record
(or forget) those handles in the runtime table right after the real call
returns. Injection applies only to blocks annotated `vulkan`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from lazylink.declarations import FunctionSignature
from lazylink.strategy import LinkStrategy, is_vulkan

from .ir import ForwardCall, TrackHandle, Trampoline


@dataclass(frozen=True)
class LifecycleHook:
	function: str
	param_index: int
	table: str
	action: str
	# The parameter is an output pointer; the handle is read through it.
	via_pointer: bool


LIFECYCLE_HOOKS = {
	hook.function: hook
	for hook in (
		LifecycleHook("vkCreateInstance", 2, "instance", "register", True),
		LifecycleHook("vkDestroyInstance", 0, "instance", "unregister", False),
		LifecycleHook("vkCreateDevice", 3, "device", "register", True),
		LifecycleHook("vkDestroyDevice", 0, "device", "unregister", False),
	)
}


def hook_for(strategy: LinkStrategy, name: str) -> Optional[LifecycleHook]:
	if not is_vulkan(strategy):
		return None
	return LIFECYCLE_HOOKS.get(name)


def inject(strategy: LinkStrategy, signature: FunctionSignature, trampoline: Trampoline) -> Optional[Trampoline]:
	"""
	Return `trampoline` with a tracking statement after the forwarded call,
	or None when no hook applies (or the declaration is too short to carry
	the tracked handle).
	"""
	hook = hook_for(strategy, signature.name)
	if hook is None or hook.param_index >= len(trampoline.params):
		return None
	track = TrackHandle(
		table=hook.table,
		action=hook.action,
		param=trampoline.params[hook.param_index],
		index=hook.param_index,
		via_pointer=hook.via_pointer,
	)
	body = list(trampoline.body)
	for pos, stmt in enumerate(body):
		if isinstance(stmt, ForwardCall):
			body.insert(pos + 1, track)
			break
	else:
		raise ValueError(f"trampoline {trampoline.id} has no forwarded call")
	return replace(trampoline, body=tuple(body))


__all__ = ["LIFECYCLE_HOOKS", "LifecycleHook", "hook_for", "inject"]
