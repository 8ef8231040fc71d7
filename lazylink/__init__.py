# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
lazylink: generate Python bindings whose foreign symbols are resolved on
first call.

Exports are kept small; generated modules only import `lazylink.runtime`.
"""

from lazylink.annotation import AnnotationError, parse_annotation
from lazylink.expand import Compilation, ExpansionResult, expand_file, expand_source
from lazylink.strategy import LinkStrategy, Named, NamedAny, WellKnown, WellKnownApi

__all__ = [
	"AnnotationError",
	"Compilation",
	"ExpansionResult",
	"LinkStrategy",
	"Named",
	"NamedAny",
	"WellKnown",
	"WellKnownApi",
	"expand_file",
	"expand_source",
	"parse_annotation",
]
