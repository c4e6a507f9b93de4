# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from nifbind.cli import main
from nifbind.compiler import Toolchain
from nifbind.nif import ConcurrencyMode
from nifbind.tests.support.fakes import FakeCommand, export, make_toolchain


def _write_file(path: Path, text: str) -> Path:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")
	return path


def _use_toolchain(monkeypatch: pytest.MonkeyPatch, toolchain: Toolchain) -> None:
	monkeypatch.setattr(Toolchain, "default", classmethod(lambda cls, **_kw: toolchain))


def _config(tmp_path: Path, **extra: object) -> Path:
	payload = {"format": "nifbind-module", "version": 0, "module": "MyApp.Math", "env": "test", **extra}
	return _write_file(tmp_path / "math.json", json.dumps(payload, indent=2))


def test_build_json_report(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
	_write_file(tmp_path / "math.zig", "/// multiplies\npub fn mul(a: i64, b: i64) i64 { return a * b; }\n")
	toolchain, _, _ = make_toolchain(tmp_path, [export("mul", 2, ConcurrencyMode.THREADED)])
	_use_toolchain(monkeypatch, toolchain)

	rc = main(["build", str(_config(tmp_path, code_path="math.zig", nifs=["..."])), "--json"])
	assert rc == 0
	report = json.loads(capsys.readouterr().out)
	assert report["status"] == "rendered"
	assert report["module"] == "MyApp.Math"
	assert report["nifs"] == [{"name": "mul", "arity": 2, "concurrency": "threaded", "doc": "multiplies"}]
	assert report["resources"] == ["ThreadResource_mul"]


def test_build_writes_rendered_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
	toolchain, _, _ = make_toolchain(tmp_path, [export("add", 2)])
	_use_toolchain(monkeypatch, toolchain)
	out = tmp_path / "out" / "math.ex"

	rc = main(["build", str(_config(tmp_path, code="pub fn add(a: i64, b: i64) i64 { return a + b; }", nifs=["add"])), "--out", str(out)])
	assert rc == 0
	assert out.read_text().startswith("defmodule MyApp.Math do")


def test_build_failure_exits_2_with_reason(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
	toolchain, _, _ = make_toolchain(tmp_path, [export("add", 2)])
	_use_toolchain(monkeypatch, toolchain)

	rc = main(["build", str(_config(tmp_path, code="pub fn add() void {}", nifs=["missing_fn"])), "--json"])
	assert rc == 2
	report = json.loads(capsys.readouterr().out)
	assert report["status"] == "aborted"
	assert report["error"]["reason_code"] == "nif-missing"
	assert report["error"]["nif"] == "missing_fn"


def test_build_config_error_is_human_readable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
	toolchain, _, _ = make_toolchain(tmp_path)
	_use_toolchain(monkeypatch, toolchain)

	rc = main(["build", str(_config(tmp_path, code="x", code_path="math.zig"))])
	assert rc == 2
	err = capsys.readouterr().err
	assert "[config]" in err
	assert "code_path" in err


def test_deps_lists_transitive_imports(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
	monkeypatch.chdir(tmp_path)
	_write_file(tmp_path / "main.zig", 'const a = @import("a.zig");\nconst std = @import("std");\n')
	_write_file(tmp_path / "a.zig", 'const b = @import("lib/b.zig");\n')
	_write_file(tmp_path / "lib" / "b.zig", 'const a = @import("../a.zig");\n')

	rc = main(["deps", "main.zig", "--json"])
	assert rc == 0
	assert json.loads(capsys.readouterr().out) == ["a.zig", "lib/b.zig"]


def test_deps_missing_import_exits_2(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
	monkeypatch.chdir(tmp_path)
	_write_file(tmp_path / "main.zig", 'const a = @import("gone.zig");\n')

	rc = main(["deps", "main.zig"])
	assert rc == 2
	assert "[dependency]" in capsys.readouterr().err


def test_fmt_skips_generated_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
	monkeypatch.setattr("nifbind.cli.ZigCommand", lambda _zig=None: FakeCommand())
	author = _write_file(tmp_path / "a.zig", "const  x = 1;\n")
	generated = _write_file(tmp_path / "module.zig", "// this code is autogenerated, do not check it into source control\nconst  y = 2;\n")

	rc = main(["fmt", str(author), str(generated)])
	assert rc == 0
	assert capsys.readouterr().out.splitlines() == [f"formatted {author}"]
	assert "const  y = 2;" in generated.read_text()
