# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from nifbind.command import ZigCommand
from nifbind.compiler import Toolchain, build
from nifbind.config import load_build_config
from nifbind.dependencies import resolve
from nifbind.errors import NifbindError, describe_read_error
from nifbind.formatter import format_file


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="nifbind", description="Build Zig-backed NIF modules for the BEAM")
	p.add_argument("-v", "--verbose", action="store_true", help="Log pipeline stages to stderr")
	sub = p.add_subparsers(dest="cmd", required=True)

	b = sub.add_parser("build", help="Verify, compile and render one module from a nifbind-module JSON config")
	b.add_argument("config", type=Path, help="Path to the module build config (.json)")
	b.add_argument("--out", type=Path, default=None, help="Write rendered glue code here (default: stdout)")
	b.add_argument("--zig", type=str, default=None, help="zig executable (default: $NIFBIND_ZIG or zig on PATH)")
	b.add_argument("--staging-root", type=str, default=None, help="Root for staging directories (default: system tmp)")
	b.add_argument("--json", action="store_true", help="Emit a machine-readable JSON report instead of glue code")

	d = sub.add_parser("deps", help="List the zig files a module source transitively imports")
	d.add_argument("source", type=Path, help="Zig source file")
	d.add_argument("--json", action="store_true", help="Emit a JSON array")

	f = sub.add_parser("fmt", help="Format zig files in place (generated files are skipped)")
	f.add_argument("paths", nargs="+", type=Path, help="Files to format")
	f.add_argument("--zig", type=str, default=None, help="zig executable (default: $NIFBIND_ZIG or zig on PATH)")
	return p


def _report_error(err: NifbindError, *, as_json: bool) -> int:
	if as_json:
		print(json.dumps({"status": "aborted", "error": err.to_dict()}, sort_keys=True, separators=(",", ":")))
	else:
		print(err.format_human(), file=sys.stderr)
	return 2


def _cmd_build(args: argparse.Namespace) -> int:
	try:
		opts = load_build_config(args.config)
		toolchain = Toolchain.default(zig=args.zig, staging_root=args.staging_root)
	except NifbindError as err:
		return _report_error(err, as_json=args.json)

	outcome = build(opts, toolchain)
	if outcome.error is not None:
		return _report_error(outcome.error, as_json=args.json)
	assert outcome.module is not None and outcome.rendered is not None

	if args.out is not None:
		args.out.parent.mkdir(parents=True, exist_ok=True)
		args.out.write_text(outcome.rendered, encoding="utf-8")
	if args.json:
		report = {
			"status": outcome.status,
			"module": outcome.module.module,
			"nifs": [
				{"name": n.name, "arity": n.signature.arity, "concurrency": n.concurrency.value, "doc": n.doc}
				for n in outcome.module.nifs
			],
			"resources": [r.name for r in outcome.module.resources],
			"dependencies": sorted(outcome.module.dependencies),
			"library_path": outcome.module.library_path,
		}
		print(json.dumps(report, sort_keys=True, separators=(",", ":")))
	elif args.out is None:
		sys.stdout.write(outcome.rendered)
	return 0


def _cmd_deps(args: argparse.Namespace) -> int:
	try:
		deps = sorted(resolve(args.source.read_text(encoding="utf-8"), str(args.source)))
	except (OSError, UnicodeDecodeError) as err:
		print(f"cannot read {args.source}: {describe_read_error(err)}", file=sys.stderr)
		return 2
	except NifbindError as err:
		return _report_error(err, as_json=args.json)
	if args.json:
		print(json.dumps(deps))
	else:
		for dep in deps:
			print(dep)
	return 0


def _cmd_fmt(args: argparse.Namespace) -> int:
	try:
		command = ZigCommand(args.zig)
	except NifbindError as err:
		return _report_error(err, as_json=False)
	for path in args.paths:
		if format_file(path, command):
			print(f"formatted {path}")
	return 0


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	if args.verbose:
		logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

	if args.cmd == "build":
		return _cmd_build(args)
	if args.cmd == "deps":
		return _cmd_deps(args)
	if args.cmd == "fmt":
		return _cmd_fmt(args)
	raise AssertionError("unreachable")


if __name__ == "__main__":
	raise SystemExit(main())
