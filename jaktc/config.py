# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Command-line configuration for jaktc.

`build_arg_parser()` describes the CLI surface; `Configuration.from_args`
validates the parsed namespace (exactly one `.jakt` input) and freezes it.
Usage problems surface as `UsageError` so the driver can report them with
exit status 1 instead of argparse's default 2.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

from jaktc import __version__

SOURCE_EXTENSION = ".jakt"
VERSION_STRING = f"jaktc {__version__}"

DEFAULT_CLANG_FORMAT_PATH = "clang-format"
DEFAULT_RUNTIME_PATH = "runtime"
DEFAULT_BINARY_DIR = "build"
DEFAULT_CXX_COMPILER_PATH = "clang++"


class UsageError(Exception):
	"""User error on the command line (bad flags, wrong input file)."""


class _ArgumentParser(argparse.ArgumentParser):
	def error(self, message: str) -> NoReturn:
		raise UsageError(message)


def build_arg_parser() -> argparse.ArgumentParser:
	p = _ArgumentParser(
		prog="jaktc",
		description="Compile a Jakt source file to C++ and optionally build and run it",
		usage="%(prog)s [-h] [OPTIONS] <filename>",
		add_help=False,
	)
	p.add_argument("sources", nargs="*", metavar="filename", help="Path to the .jakt source file")

	flags = p.add_argument_group("flags")
	flags.add_argument("-h", "--help", action="store_true", help="Print this help and exit")
	flags.add_argument("-v", "--version", action="store_true", help="Print version information and exit")
	flags.add_argument("-l", dest="dump_lexer", action="store_true", help="Print debug info for the lexer")
	flags.add_argument("-p", dest="dump_parser", action="store_true", help="Print debug info for the parser")
	flags.add_argument("-t", dest="dump_typechecker", action="store_true", help="Print debug info for the typechecker")
	flags.add_argument("-b", dest="build", action="store_true", help="Build an executable file")
	flags.add_argument("-r", dest="run", action="store_true", help="Build and run an executable file")
	flags.add_argument("-d", dest="debug_info", action="store_true", help="Insert debug statement spans in generated C++ code")
	flags.add_argument("-c", "--check-only", dest="check_only", action="store_true", help="Only check the code for errors")
	flags.add_argument("--debug-print", dest="debug_print", action="store_true", help="Output debug print")
	flags.add_argument(
		"--prettify-cpp-source",
		dest="prettify_cpp_source",
		action="store_true",
		help="Run emitted C++ source through clang-format",
	)
	flags.add_argument(
		"--json",
		action="store_true",
		help="Emit failure diagnostics as JSON (phase/message/severity/file/line/column)",
	)

	options = p.add_argument_group("options")
	options.add_argument(
		"-F",
		"--clang-format-path",
		dest="clang_format_path",
		default=DEFAULT_CLANG_FORMAT_PATH,
		metavar="PATH",
		help=f"Path to clang-format executable (default: {DEFAULT_CLANG_FORMAT_PATH})",
	)
	options.add_argument(
		"-D",
		"--dot-clang-format-path",
		dest="dot_clang_format_path",
		default=None,
		metavar="PATH",
		help="Path to the .clang-format file to use",
	)
	options.add_argument(
		"-R",
		"--runtime-path",
		dest="runtime_path",
		default=DEFAULT_RUNTIME_PATH,
		metavar="PATH",
		help=f"Path of the Jakt runtime headers (default: {DEFAULT_RUNTIME_PATH})",
	)
	options.add_argument(
		"-o",
		"--binary-dir",
		dest="binary_dir",
		default=DEFAULT_BINARY_DIR,
		metavar="PATH",
		help=f"Output directory for generated C++ and the binary (default: {DEFAULT_BINARY_DIR})",
	)
	options.add_argument(
		"-C",
		"--cxx-compiler-path",
		dest="cxx_compiler_path",
		default=DEFAULT_CXX_COMPILER_PATH,
		metavar="PATH",
		help=f"Path of the C++ compiler to use when compiling the generated sources (default: {DEFAULT_CXX_COMPILER_PATH})",
	)
	return p


@dataclass(frozen=True)
class Configuration:
	"""Resolved, immutable driver configuration."""

	input_file: Path
	dump_lexer: bool = False
	dump_parser: bool = False
	dump_typechecker: bool = False
	debug_print: bool = False
	build: bool = False
	run: bool = False
	debug_info: bool = False
	check_only: bool = False
	prettify_cpp_source: bool = False
	json: bool = False
	clang_format_path: str = DEFAULT_CLANG_FORMAT_PATH
	dot_clang_format_path: Optional[Path] = None
	runtime_path: Path = Path(DEFAULT_RUNTIME_PATH)
	binary_dir: Path = Path(DEFAULT_BINARY_DIR)
	cxx_compiler_path: str = DEFAULT_CXX_COMPILER_PATH

	@property
	def wants_build(self) -> bool:
		"""`-r` implies `-b`."""
		return self.build or self.run

	@classmethod
	def from_args(cls, args: argparse.Namespace) -> "Configuration":
		sources = list(args.sources)
		if not sources:
			raise UsageError("no source file given")
		if len(sources) > 1:
			raise UsageError("you can only pass one source file")
		input_file = Path(sources[0])
		if input_file.suffix != SOURCE_EXTENSION:
			raise UsageError(
				f"the compiler expects files with a {SOURCE_EXTENSION} extension, got '{input_file.name}'"
			)
		return cls(
			input_file=input_file,
			dump_lexer=args.dump_lexer,
			dump_parser=args.dump_parser,
			dump_typechecker=args.dump_typechecker,
			debug_print=args.debug_print,
			build=args.build,
			run=args.run,
			debug_info=args.debug_info,
			check_only=args.check_only,
			prettify_cpp_source=args.prettify_cpp_source,
			json=args.json,
			clang_format_path=args.clang_format_path,
			dot_clang_format_path=Path(args.dot_clang_format_path) if args.dot_clang_format_path else None,
			runtime_path=Path(args.runtime_path),
			binary_dir=Path(args.binary_dir),
			cxx_compiler_path=args.cxx_compiler_path,
		)


__all__ = [
	"Configuration",
	"UsageError",
	"build_arg_parser",
	"SOURCE_EXTENSION",
	"VERSION_STRING",
	"DEFAULT_BINARY_DIR",
	"DEFAULT_CLANG_FORMAT_PATH",
	"DEFAULT_CXX_COMPILER_PATH",
	"DEFAULT_RUNTIME_PATH",
]
