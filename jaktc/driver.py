# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
jaktc driver: configuration, phase sequencing and the build/run/emit step.

  configure -> register -> lex -> parse -> typecheck -> gate
    -> [check-only: stop]
    -> generate -> emit to stdout
                 | write <binary-dir>/<name>.cpp, compile, [prettify], [run]

Lex, parse and typecheck always all run; diagnostics are only inspected at
the gate, so a lexer error does not hide type errors later in the file.
Generate never sees a program that reported anything.
"""

from __future__ import annotations

import json
import pprint
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List

from jaktc.codegen import generate
from jaktc.compiler import CompilationContext
from jaktc.config import VERSION_STRING, Configuration, UsageError, build_arg_parser
from jaktc.lexer import lex
from jaktc.parser import parse
from jaktc.toolchain import BuildError, output_paths, run_binary, run_compiler, run_formatter
from jaktc.typechecker import typecheck


@dataclass(frozen=True)
class Phases:
	"""
	The four phase functions, in pipeline order.

	Contracts (errors are appended to the context, never raised):
	  lex(context) -> tokens
	  parse(context, tokens) -> tree
	  typecheck(context, tree) -> checked program
	  generate(context, checked, debug_info) -> C++ text
	"""

	lex: Callable[[CompilationContext], List[Any]] = lex
	parse: Callable[[CompilationContext, List[Any]], Any] = parse
	typecheck: Callable[[CompilationContext, Any], Any] = typecheck
	generate: Callable[[CompilationContext, Any, bool], str] = generate


def _usage_error(parser, message: str) -> int:
	print(f"error: {message}", file=sys.stderr)
	parser.print_usage(sys.stderr)
	return 1


def configure(argv: List[str]) -> Configuration | int:
	"""Resolve the CLI into a Configuration, or an exit status to stop with."""
	parser = build_arg_parser()
	if not argv:
		parser.print_usage(sys.stderr)
		return 1
	wants_help = "-h" in argv or "--help" in argv
	wants_version = "-v" in argv or "--version" in argv
	try:
		# Grouped (-bh) and abbreviated (--hel) spellings only show up after parsing.
		known, _ = parser.parse_known_args(argv)
		wants_help = wants_help or known.help
		wants_version = wants_version or known.version
	except UsageError:
		pass
	if wants_help:
		parser.print_help(sys.stdout)
		return 0
	if wants_version:
		print(VERSION_STRING)
		return 0
	try:
		args = parser.parse_args(argv)
		return Configuration.from_args(args)
	except UsageError as err:
		return _usage_error(parser, str(err))


def _dump(title: str, text: str) -> None:
	print(f"--- {title} ---", file=sys.stderr)
	print(text, file=sys.stderr)


def _render_checked(checked: Any) -> str:
	render = getattr(checked, "render", None)
	return render() if callable(render) else pprint.pformat(checked)


def _report_build_error(config: Configuration, err: BuildError, path: Path) -> None:
	if config.json:
		diag = {
			"phase": "build",
			"code": err.reason_code,
			"message": err.message,
			"severity": "error",
			"file": str(path),
			"line": None,
			"column": None,
			"notes": [err.stderr.rstrip()] if err.stderr else [],
		}
		print(json.dumps({"exit_code": 1, "diagnostics": [diag]}))
	else:
		print(f"{path}: error: {err.format_human()}", file=sys.stderr)


def build_and_run(config: Configuration, context: CompilationContext, output: str) -> int:
	"""Write the generated C++, compile it, optionally prettify and run it."""
	cpp_path, binary_path = output_paths(config.input_file, config.binary_dir)
	try:
		config.binary_dir.mkdir(parents=True, exist_ok=True)
		cpp_path.write_text(output, encoding="utf-8")
	except OSError as err:
		print(f"error: could not write '{cpp_path}': {err.strerror or err}", file=sys.stderr)
		return 1
	context.dbg_println(f"wrote {cpp_path}")

	try:
		run_compiler(config.cxx_compiler_path, cpp_path, binary_path, config.runtime_path)
		context.dbg_println(f"built {binary_path}")
		if config.prettify_cpp_source:
			run_formatter(config.clang_format_path, cpp_path, config.dot_clang_format_path)
			context.dbg_println(f"formatted {cpp_path}")
	except BuildError as err:
		_report_build_error(config, err, cpp_path)
		return 1

	if not config.run:
		return 0
	context.dbg_println(f"running {binary_path}")
	try:
		return run_binary(binary_path)
	except OSError as err:
		print(f"error: could not run '{binary_path}': {err.strerror or err}", file=sys.stderr)
		return 1


def compile_file(config: Configuration, phases: Phases | None = None) -> int:
	"""Run the pipeline for one configured input file; returns the exit status."""
	phases = phases or Phases()
	context = CompilationContext(
		debug_print=config.debug_print,
		dump_lexer=config.dump_lexer,
		dump_parser=config.dump_parser,
		dump_typechecker=config.dump_typechecker,
	)
	try:
		file_id = context.register_file(config.input_file)
	except (OSError, UnicodeDecodeError) as err:
		reason = getattr(err, "strerror", None) or err
		print(f"error: could not read '{config.input_file}': {reason}", file=sys.stderr)
		return 1
	context.set_current_file(file_id)

	tokens = phases.lex(context)
	if context.dump_lexer:
		_dump("tokens", "\n".join(f"token: {tok!r}" for tok in tokens))
	tree = phases.parse(context, tokens)
	if context.dump_parser:
		_dump("parsed program", pprint.pformat(tree))
	checked = phases.typecheck(context, tree)
	if context.dump_typechecker:
		_dump("checked program", _render_checked(checked))

	if context.has_errors():
		context.dbg_println(f"{len(context.errors)} diagnostic(s); stopping before codegen")
		if config.json:
			context.print_errors_json()
		else:
			context.print_errors()
		return 1
	if config.check_only:
		return 0

	output = phases.generate(context, checked, config.debug_info)
	if not config.wants_build:
		sys.stdout.write(output)
		return 0
	return build_and_run(config, context, output)


def main(argv: list[str] | None = None, *, phases: Phases | None = None) -> int:
	"""
	CLI entrypoint. `argv` excludes the program name (defaults to
	`sys.argv[1:]`).

	Exit status: 0 on success/help/version, 1 on usage errors, unreadable
	input, compilation diagnostics or build failures; with `-r`, the exit
	status of the produced binary.
	"""
	resolved = configure(list(sys.argv[1:] if argv is None else argv))
	if isinstance(resolved, int):
		return resolved
	return compile_file(resolved, phases)


if __name__ == "__main__":
	sys.exit(main())
