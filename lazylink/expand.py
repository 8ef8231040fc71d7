# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Expansion pipeline for one link file.

  parse (lark) -> per block: annotation -> declarations -> synthesis
  -> ModuleIR -> Python source

A syntax error yields a single diagnostic and no module. An annotation error
drops its block; a declaration or type problem drops only its function.
Everything that survives is rendered, so one bad declaration never hides the
rest of the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from lazylink.annotation import ANNOTATION_ATTR, AnnotationError, strategy_from_attribute
from lazylink.codegen import GeneratedUnit, LinkConst, ModuleIR, TypeMappingError, render_module, synthesize
from lazylink.config import GeneratorConfig
from lazylink.core.diagnostics import PHASE_ANNOTATION, PHASE_DECLARATION, Diagnostic, has_errors
from lazylink.declarations import parse_extern_block
from lazylink.ids import LINK_PREFIX, IdentifierAllocator
from lazylink.parser import parse_link_source
from lazylink.parser.ast import ExternBlock, TypeExpr

logger = logging.getLogger(__name__)


class Compilation:
	"""
	Context shared by every file expanded in one run.

	Owns the trampoline id allocator, so ids stay unique across all files and
	blocks of the run.
	"""

	def __init__(self, config: Optional[GeneratorConfig] = None, allocator: Optional[IdentifierAllocator] = None) -> None:
		self.config = config or GeneratorConfig()
		self.ids = allocator or IdentifierAllocator()


@dataclass
class ExpansionResult:
	file: Optional[str]
	module: Optional[ModuleIR] = None
	diagnostics: List[Diagnostic] = field(default_factory=list)
	source: Optional[str] = None

	@property
	def units(self) -> List[GeneratedUnit]:
		return list(self.module.units) if self.module is not None else []

	@property
	def has_errors(self) -> bool:
		return has_errors(self.diagnostics)


def expand_source(
	source: str,
	*,
	file: Optional[str] = None,
	compilation: Optional[Compilation] = None,
) -> ExpansionResult:
	comp = compilation or Compilation()
	result = ExpansionResult(file=file)
	link_file, diags = parse_link_source(source, file=file)
	result.diagnostics.extend(diags)
	if link_file is None:
		logger.info("%s: syntax error, no module generated", file or "<input>")
		return result

	aliases: Dict[str, TypeExpr] = {}
	for alias in link_file.aliases:
		if alias.name in aliases:
			result.diagnostics.append(
				Diagnostic(
					message=f"duplicate type alias `{alias.name}`",
					phase=PHASE_DECLARATION,
					span=alias.loc.with_file(file),
					found=alias.name,
				)
			)
			continue
		aliases[alias.name] = alias.type_expr

	module = ModuleIR(source_file=file)
	defined: Dict[str, int] = {}
	for block_index, block in enumerate(link_file.blocks):
		link_ref = f"{LINK_PREFIX}{len(module.links)}"
		link, units, block_diags = expand_block(block, comp, link_ref=link_ref, aliases=aliases, file=file)
		result.diagnostics.extend(block_diags)
		if link is None:
			continue
		if units:
			module.links.append(link)
		for unit in units:
			name = unit.cache_cell_id
			if name in defined and defined[name] != block_index:
				result.diagnostics.append(
					Diagnostic(
						message=f"`{name}` shadows a function declared in an earlier block",
						phase=PHASE_DECLARATION,
						severity="warning",
						span=unit.signature.span,
						found=name,
					)
				)
			defined[name] = block_index
			module.units.append(unit)

	result.module = module
	cfg = comp.config
	result.source = render_module(
		module,
		runtime_module=cfg.runtime_module,
		indent=cfg.indent,
		header=cfg.header,
	)
	logger.info(
		"%s: %d function(s) in %d block(s), %d diagnostic(s)",
		file or "<input>",
		len(module.units),
		len(module.links),
		len(result.diagnostics),
	)
	return result


def expand_block(
	block: ExternBlock,
	compilation: Compilation,
	*,
	link_ref: str,
	aliases: Optional[Dict[str, TypeExpr]] = None,
	file: Optional[str] = None,
) -> Tuple[Optional[LinkConst], List[GeneratedUnit], List[Diagnostic]]:
	"""
	Expand one annotated extern block.

	Returns `(None, [], diags)` when the block is dropped as a whole.
	"""
	diags: List[Diagnostic] = []
	annotations = [attr for attr in block.attributes if attr.head == ANNOTATION_ATTR]
	for attr in block.attributes:
		if attr.head != ANNOTATION_ATTR:
			diags.append(
				Diagnostic(
					message=f"unused attribute `#[{attr.text}]` on extern block",
					phase=PHASE_ANNOTATION,
					severity="warning",
					span=attr.loc.with_file(file),
				)
			)
	if not annotations:
		diags.append(
			Diagnostic(
				message=f"extern block is missing a `#[{ANNOTATION_ATTR}(...)]` annotation",
				phase=PHASE_ANNOTATION,
				span=block.extern_loc.with_file(file),
				expected=f"`#[{ANNOTATION_ATTR}(...)]`",
			)
		)
		return None, [], diags
	if len(annotations) > 1:
		diags.append(
			Diagnostic(
				message=f"extern block has {len(annotations)} `{ANNOTATION_ATTR}` annotations",
				phase=PHASE_ANNOTATION,
				span=annotations[1].loc.with_file(file),
				notes=["a block takes exactly one link strategy"],
			)
		)
		return None, [], diags
	try:
		strategy = strategy_from_attribute(annotations[0].expr, file=file)
	except AnnotationError as err:
		diags.append(err.diagnostic)
		return None, [], diags

	decls = parse_extern_block(block, file=file)
	diags.extend(decls.diagnostics)
	if decls.abi is None:
		return None, [], diags
	logger.debug("block %s: %s, %d signature(s)", link_ref, strategy.describe(), len(decls.signatures))

	units: List[GeneratedUnit] = []
	for sig in decls.signatures:
		try:
			unit, warnings = synthesize(
				strategy,
				sig,
				compilation.ids.next(),
				link_ref=link_ref,
				aliases=aliases,
				file=file,
			)
		except TypeMappingError as err:
			diags.append(err.diagnostic)
			continue
		diags.extend(warnings)
		units.append(unit)
	return LinkConst(ref=link_ref, strategy=strategy), units, diags


def expand_file(path: Path, compilation: Optional[Compilation] = None) -> ExpansionResult:
	path = Path(path)
	return expand_source(path.read_text(encoding="utf-8"), file=str(path), compilation=compilation)


__all__ = ["Compilation", "ExpansionResult", "expand_block", "expand_file", "expand_source"]
