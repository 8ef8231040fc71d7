# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line driver for lazylink.

Expands each link file into a Python binding module. With `--json`, prints a
single object with `exit_code`, `diagnostics` and `outputs`; otherwise
diagnostics go to stderr in `file:line:col: severity: message` form and,
without `-o`/`--out-dir`, the generated module goes to stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from lazylink.codegen import dump_ir
from lazylink.config import ConfigError, load_config
from lazylink.core.diagnostics import Diagnostic, errors_only
from lazylink.expand import Compilation, expand_file

logger = logging.getLogger(__name__)

PHASE_DRIVER = "driver"


def _build_arg_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="lazylink",
		description="Generate lazily-bound ctypes wrappers from extern declaration files",
	)
	parser.add_argument("source", type=Path, nargs="+", help="Path(s) to link files")
	out = parser.add_mutually_exclusive_group()
	out.add_argument("-o", "--output", type=Path, help="Write the generated module here (single input only)")
	out.add_argument("--out-dir", type=Path, help="Write `<stem>.py` for each input into this directory")
	parser.add_argument("--json", action="store_true", help="Emit diagnostics as JSON")
	parser.add_argument("--config", type=Path, help="JSON generator config file")
	parser.add_argument("--runtime-module", help="Module the generated code imports as its runtime")
	parser.add_argument(
		"--no-header",
		dest="header",
		action="store_false",
		default=None,
		help="Omit the generated-file header comment",
	)
	parser.add_argument("--dump-ir", action="store_true", help="Print the binding IR to stdout")
	parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (repeatable)")
	return parser


def _configure_logging(verbosity: int) -> None:
	level = logging.WARNING
	if verbosity == 1:
		level = logging.INFO
	elif verbosity >= 2:
		level = logging.DEBUG
	logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _report(diagnostics: List[Diagnostic], outputs: List[str], *, as_json: bool) -> int:
	errors = errors_only(diagnostics)
	exit_code = 1 if errors else 0
	if as_json:
		payload = {
			"exit_code": exit_code,
			"error_count": len(errors),
			"diagnostics": [d.to_json() for d in diagnostics],
			"outputs": outputs,
		}
		print(json.dumps(payload))
	else:
		for diag in diagnostics:
			print(diag.render(), file=sys.stderr)
	return exit_code


def main(argv: Optional[List[str]] = None) -> int:
	"""
	Entry point for `python -m lazylink`.

	Returns 0 when no error diagnostic was reported, 1 otherwise.
	"""
	parser = _build_arg_parser()
	args = parser.parse_args(argv)
	_configure_logging(args.verbose)

	diagnostics: List[Diagnostic] = []
	outputs: List[str] = []

	if args.output is not None and len(args.source) > 1:
		diagnostics.append(
			Diagnostic(message="-o/--output accepts a single input; use --out-dir", phase=PHASE_DRIVER)
		)
		return _report(diagnostics, outputs, as_json=args.json)

	try:
		config = load_config(args.config, runtime_module=args.runtime_module, header=args.header)
	except ConfigError as err:
		diagnostics.append(Diagnostic(message=str(err), phase=PHASE_DRIVER))
		return _report(diagnostics, outputs, as_json=args.json)

	compilation = Compilation(config)
	for path in args.source:
		try:
			result = expand_file(path, compilation)
		except (OSError, UnicodeDecodeError) as err:
			diagnostics.append(Diagnostic(message=f"cannot read {path}: {err}", phase=PHASE_DRIVER))
			continue
		diagnostics.extend(result.diagnostics)
		if result.source is None:
			continue
		if args.dump_ir:
			sys.stdout.write(dump_ir(result.module))
		dest: Optional[Path] = None
		if args.output is not None:
			dest = args.output
		elif args.out_dir is not None:
			dest = args.out_dir / f"{path.stem}.py"
		if dest is None:
			if not args.json and not args.dump_ir:
				sys.stdout.write(result.source)
			continue
		try:
			dest.parent.mkdir(parents=True, exist_ok=True)
			dest.write_text(result.source, encoding="utf-8")
		except OSError as err:
			diagnostics.append(Diagnostic(message=f"cannot write {dest}: {err}", phase=PHASE_DRIVER))
			continue
		logger.info("wrote %s", dest)
		outputs.append(str(dest))

	return _report(diagnostics, outputs, as_json=args.json)


__all__ = ["main"]
