# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span representation used by diagnostics.

A Span carries best-effort file/line/column info. Lark trees expose it via
`meta`, lark tokens directly; `Span.from_node` accepts either.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (1-based line/column, end is exclusive)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_node(cls, node: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a lark Tree (via `meta`) or Token.

		Returns the unknown span `Span(file=file)` when the node carries no
		position info (e.g. an empty tree).
		"""
		if node is None:
			return cls(file=file)
		if isinstance(node, cls):
			return node if file is None else replace(node, file=file)
		meta = getattr(node, "meta", None)
		src = meta if meta is not None and not getattr(meta, "empty", False) else node
		return cls(
			file=file,
			line=getattr(src, "line", None),
			column=getattr(src, "column", None),
			end_line=getattr(src, "end_line", None),
			end_column=getattr(src, "end_column", None),
		)

	def with_file(self, file: Optional[str]) -> "Span":
		return replace(self, file=file)

	@property
	def known(self) -> bool:
		return self.line is not None


__all__ = ["Span"]
