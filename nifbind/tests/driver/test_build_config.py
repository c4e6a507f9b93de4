# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from nifbind.config import load_build_config
from nifbind.errors import CONFIG, NifbindError
from nifbind.module import HostFlavor


def _write_config(path: Path, payload: dict) -> Path:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
	return path


def _base(**extra: object) -> dict:
	return {"format": "nifbind-module", "version": 0, "module": "MyApp.Math", **extra}


def test_minimal_config_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
	monkeypatch.delenv("NIFBIND_ENV", raising=False)
	cfg = _write_config(tmp_path / "math.json", _base(code_path="math.zig", nifs=["add", "..."]))
	opts = load_build_config(cfg)
	assert opts.module == "MyApp.Math"
	assert opts.flavor is HostFlavor.ELIXIR
	assert opts.file == str(cfg)
	assert opts.code_path == "math.zig"
	assert opts.nifs == ("add", "...")
	assert opts.env == "dev"
	assert opts.line == 4


def test_env_comes_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
	monkeypatch.setenv("NIFBIND_ENV", "prod")
	opts = load_build_config(_write_config(tmp_path / "m.json", _base(code="")))
	assert opts.env == "prod"


def test_relative_file_is_resolved_against_config(tmp_path: Path) -> None:
	cfg = _write_config(tmp_path / "cfg" / "m.json", _base(file="../lib/math.ex", flavor="erlang", code=""))
	opts = load_build_config(cfg)
	assert Path(opts.file) == tmp_path / "cfg" / ".." / "lib" / "math.ex"
	assert opts.flavor is HostFlavor.ERLANG


def test_code_and_code_path_keep_the_offending_line(tmp_path: Path) -> None:
	cfg = _write_config(tmp_path / "m.json", _base(code="pub fn a() void {}", code_path="a.zig"))
	opts = load_build_config(cfg)
	assert opts.code is not None and opts.code_path == "a.zig"
	assert opts.line == 5


@pytest.mark.parametrize(
	"payload",
	[
		{"format": "other", "version": 0, "module": "M"},
		{"format": "nifbind-module", "version": 1, "module": "M"},
		_base(extra_field=True),
		{"format": "nifbind-module", "version": 0},
		_base(flavor="lua"),
		_base(nifs="add"),
		_base(nifs=[42]),
		_base(resources=[""]),
		_base(attributes=[]),
	],
)
def test_invalid_configs_are_config_errors(tmp_path: Path, payload: dict) -> None:
	with pytest.raises(NifbindError) as excinfo:
		load_build_config(_write_config(tmp_path / "bad.json", payload))
	assert excinfo.value.reason_code == CONFIG
	assert excinfo.value.span.file == str(tmp_path / "bad.json")


def test_invalid_json_reports_position(tmp_path: Path) -> None:
	cfg = tmp_path / "broken.json"
	cfg.write_text('{\n  "format": "nifbind-module",\n  oops\n}\n', encoding="utf-8")
	with pytest.raises(NifbindError) as excinfo:
		load_build_config(cfg)
	assert excinfo.value.reason_code == CONFIG
	assert excinfo.value.span.line == 3


def test_missing_config_file_is_a_config_error(tmp_path: Path) -> None:
	with pytest.raises(NifbindError) as excinfo:
		load_build_config(tmp_path / "nope.json")
	assert excinfo.value.reason_code == CONFIG
