# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Generator configuration.

Defaults < JSON config file (`--config`) < explicit CLI flags.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


class ConfigError(ValueError):
	pass


@dataclass(frozen=True)
class GeneratorConfig:
	runtime_module: str = "lazylink.runtime"
	indent: str = "    "
	header: bool = True

	def merged(self, overrides: Mapping[str, Any]) -> "GeneratorConfig":
		"""Copy with every non-None override applied (unknown keys rejected)."""
		known = {f.name for f in fields(self)}
		changes: Dict[str, Any] = {}
		for key, value in overrides.items():
			if key not in known:
				raise ConfigError(f"unknown config key {key!r}")
			if value is None:
				continue
			changes[key] = value
		cfg = replace(self, **changes)
		cfg.validate()
		return cfg

	def validate(self) -> None:
		if not isinstance(self.runtime_module, str) or not all(
			part.isidentifier() for part in self.runtime_module.split(".")
		):
			raise ConfigError(f"runtime_module must be a dotted module path, got {self.runtime_module!r}")
		if not isinstance(self.indent, str) or not self.indent or self.indent.strip(" \t"):
			raise ConfigError("indent must be a non-empty run of spaces or tabs")
		if not isinstance(self.header, bool):
			raise ConfigError("header must be a boolean")


def load_config(path: Optional[Path] = None, **overrides: Any) -> GeneratorConfig:
	cfg = GeneratorConfig()
	if path is not None:
		try:
			data = json.loads(Path(path).read_text(encoding="utf-8"))
		except (OSError, json.JSONDecodeError) as err:
			raise ConfigError(f"cannot read config {path}: {err}") from err
		if not isinstance(data, dict):
			raise ConfigError(f"config {path} must contain a JSON object")
		cfg = cfg.merged(data)
	return cfg.merged(overrides)


__all__ = ["ConfigError", "GeneratorConfig", "load_config"]
