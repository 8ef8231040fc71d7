#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""CLI: outputs, JSON diagnostics and exit codes."""

import json

from lazylink.driver import main

GOOD = """
#[lazylink(name = "foo")]
extern "C" {
	pub fn foo_add(a: i32, b: i32) -> i32;
}
"""


def _write(tmp_path, name: str, text: str):
	path = tmp_path / name
	path.write_text(text)
	return path


def test_writes_module_to_output(tmp_path, capsys):
	src = _write(tmp_path, "foo.link", GOOD)
	out = tmp_path / "out" / "foo_bindings.py"
	assert main([str(src), "-o", str(out)]) == 0
	text = out.read_text()
	assert "foo_add = _rt.LazyBoundFn(" in text
	assert capsys.readouterr().err == ""


def test_stdout_when_no_destination(tmp_path, capsys):
	src = _write(tmp_path, "foo.link", GOOD)
	assert main([str(src)]) == 0
	assert "def __initializer_0(a, b):" in capsys.readouterr().out


def test_out_dir_names_modules_after_inputs(tmp_path, capsys):
	a = _write(tmp_path, "alpha.link", GOOD)
	b = _write(tmp_path, "beta.link", GOOD.replace("foo_add", "foo_sub"))
	out_dir = tmp_path / "gen"
	assert main([str(a), str(b), "--out-dir", str(out_dir), "--json"]) == 0
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 0
	assert payload["error_count"] == 0
	assert payload["outputs"] == [str(out_dir / "alpha.py"), str(out_dir / "beta.py")]
	# Ids stay unique across files of one run.
	assert "__initializer_1" in (out_dir / "beta.py").read_text()


def test_json_diagnostics_and_exit_code(tmp_path, capsys):
	src = _write(
		tmp_path,
		"bad.link",
		'#[lazylink(metal)]\nextern "C" { fn a(); }\n#[lazylink(name = "x")]\nextern "C" { fn b(&self); fn c(); }\n',
	)
	out = tmp_path / "bad.py"
	assert main([str(src), "-o", str(out), "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 1
	errors = [d for d in payload["diagnostics"] if d["severity"] == "error"]
	assert payload["error_count"] == len(errors) >= 2
	messages = [d["message"] for d in payload["diagnostics"]]
	assert "expected `vulkan`, `opengl`, `any`, or `name`, found `metal`" in messages
	assert "receiver arguments are unsupported" in messages
	first = payload["diagnostics"][0]
	assert first["file"] == str(src)
	assert first["line"] == 1
	assert first["phase"] == "annotation"
	# Surviving functions are still emitted.
	text = out.read_text()
	assert "c = _rt.LazyBoundFn(" in text
	assert "a = _rt.LazyBoundFn(" not in text


def test_syntax_error_produces_no_module(tmp_path, capsys):
	src = _write(tmp_path, "broken.link", 'extern "C" { fn }')
	out = tmp_path / "broken.py"
	assert main([str(src), "-o", str(out)]) == 1
	assert not out.exists()
	err = capsys.readouterr().err
	assert f"{src}:1:" in err
	assert "error:" in err


def test_config_file_and_flag_override(tmp_path, capsys):
	src = _write(tmp_path, "foo.link", GOOD)
	cfg = _write(tmp_path, "cfg.json", json.dumps({"runtime_module": "vendored.rt", "indent": "\t"}))
	out = tmp_path / "foo.py"
	assert main([str(src), "-o", str(out), "--config", str(cfg), "--no-header"]) == 0
	text = out.read_text()
	assert text.startswith("import ctypes")
	assert "import vendored.rt as _rt" in text
	assert "\n\t_result = _target(a, b)" in text


def test_bad_config_is_a_driver_error(tmp_path, capsys):
	src = _write(tmp_path, "foo.link", GOOD)
	cfg = _write(tmp_path, "cfg.json", json.dumps({"trampoline_prefix": "x"}))
	assert main([str(src), "--config", str(cfg), "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["diagnostics"][0]["phase"] == "driver"
	assert "unknown config key" in payload["diagnostics"][0]["message"]


def test_dump_ir(tmp_path, capsys):
	src = _write(tmp_path, "foo.link", GOOD)
	assert main([str(src), "--dump-ir"]) == 0
	out = capsys.readouterr().out
	assert 'link _LINK_0 = name = "foo"' in out
	assert "pub cell foo_add" in out


def test_bad_string_escape_is_reported_at_the_escape(tmp_path, capsys):
	src = _write(tmp_path, "esc.link", '#[lazylink(name = "lib\\u20ac")]\nextern "C" { fn f(); }\n')
	out = tmp_path / "esc.py"
	assert main([str(src), "-o", str(out)]) == 1
	assert not out.exists()
	err = capsys.readouterr().err
	assert f"{src}:1:23:" in err
	assert "invalid unicode escape" in err
	assert "cannot read" not in err


def test_unicode_escape_in_library_name(tmp_path, capsys):
	src = _write(tmp_path, "cafe.link", '#[lazylink(name = "caf\\u{e9}")]\nextern "C" { fn f(); }\n')
	out = tmp_path / "cafe.py"
	assert main([str(src), "-o", str(out)]) == 0
	assert "caf\\u00e9" in out.read_text()
