# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from nifbind.builder import Stager, assembly_dir
from nifbind.declarations import normalize_nifs
from nifbind.errors import COMPILE, NifbindError
from nifbind.module import ModuleDescriptor
from nifbind.nif import ConcurrencyMode, Signature
from nifbind.sema import parse_sema_json
from nifbind.tests.support.fakes import make_options


def test_sema_json_is_decoded_in_order() -> None:
	text = json.dumps(
		{
			"functions": [
				{"name": "add", "params": ["i64", "i64"], "returns": "i64"},
				{"name": "spin", "params": [], "concurrency": "dirty_cpu"},
			]
		}
	)
	reported = parse_sema_json(text)
	assert [r.name for r in reported] == ["add", "spin"]
	assert reported[0].signature == Signature(("i64", "i64"), "i64")
	assert reported[0].concurrency is ConcurrencyMode.SYNCHRONOUS
	assert reported[1].signature.returns == "void"
	assert reported[1].concurrency is ConcurrencyMode.DIRTY_CPU


@pytest.mark.parametrize(
	"text",
	["not json", "[]", '{"functions": {}}', '{"functions": [{"params": []}]}', '{"functions": [{"name": "a", "concurrency": "odd"}]}'],
)
def test_bad_sema_output_is_a_compile_error(text: str) -> None:
	with pytest.raises(NifbindError) as excinfo:
		parse_sema_json(text, file="nif.ex")
	assert excinfo.value.reason_code == COMPILE
	assert excinfo.value.span.file == "nif.ex"


def test_assembly_dir_layout() -> None:
	assert assembly_dir("dev", "MyApp.Math", root="/tmp") == "/tmp/.nifbind_compiler/dev/MyApp.Math"
	assert assembly_dir("test", "M", root="C:\\temp\\") == "C:/temp/.nifbind_compiler/test/M"


def test_stage_writes_source_and_mirrors_siblings(tmp_path: Path) -> None:
	(tmp_path / "helpers.zig").write_text("pub const k = 1;\n", encoding="utf-8")
	(tmp_path / ".hidden").mkdir()
	(tmp_path / ".hidden" / "skip.zig").write_text("", encoding="utf-8")
	module = ModuleDescriptor.from_options(make_options(tmp_path, code="x"), normalize_nifs([]))

	staged = Stager(str(tmp_path / "out")).stage(module, "pub fn a() void {}\n")
	directory = tmp_path / "out" / ".nifbind_compiler" / "test" / "NifTest"
	assert staged.staged_path == str(directory / ".NifTest.zig")
	assert Path(staged.staged_path).read_text() == "pub fn a() void {}\n"
	assert (directory / "helpers.zig").read_text() == "pub const k = 1;\n"
	assert not (directory / ".hidden").exists()


def test_distinct_modules_get_distinct_directories(tmp_path: Path) -> None:
	stager = Stager(str(tmp_path))
	assert stager.staging_directory("dev", "A") != stager.staging_directory("dev", "B")
	assert stager.staging_directory("dev", "A") != stager.staging_directory("test", "A")
