# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Binding synthesis and Python source rendering."""

from .ctypes_map import TypeMappingError, map_param_type, map_type
from .ir import CacheCell, GeneratedUnit, LinkConst, ModuleIR, Trampoline
from .printer import dump_ir, render_module
from .synth import synthesize

__all__ = [
	"CacheCell",
	"GeneratedUnit",
	"LinkConst",
	"ModuleIR",
	"Trampoline",
	"TypeMappingError",
	"dump_ir",
	"map_param_type",
	"map_type",
	"render_module",
	"synthesize",
]
