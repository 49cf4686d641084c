# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
External tool invocation for build mode: the C++ compiler, clang-format and
the produced binary.

Every tool call either returns a `ProcessResult` or raises `BuildError`;
nothing is fire-and-forget, so a failed native build can never be reported
as success.
"""

from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from jaktc.config import SOURCE_EXTENSION

E_TOOL_NOT_FOUND = "E_TOOL_NOT_FOUND"
E_CXX_FAILED = "E_CXX_FAILED"
E_FORMAT_FAILED = "E_FORMAT_FAILED"

# Warning categories the generated code trips routinely.
SUPPRESSED_WARNINGS = (
	"-Wno-user-defined-literals",
	"-Wno-return-type",
	"-Wno-unused-variable",
	"-Wno-unused-parameter",
	"-Wno-unused-command-line-argument",
	"-Wno-unused-but-set-variable",
	"-Wno-trigraphs",
	"-Wno-parentheses-equality",
	"-Wno-unqualified-std-cast-call",
	"-Wno-deprecated-declarations",
)


@dataclass(frozen=True)
class ProcessResult:
	command: tuple[str, ...]
	returncode: int
	stdout: str = ""
	stderr: str = ""

	@property
	def ok(self) -> bool:
		return self.returncode == 0


@dataclass(frozen=True)
class BuildError(Exception):
	"""
	A build-step failure (missing tool, compiler or formatter error).

	Kept separate from compilation diagnostics: the program was valid, the
	native toolchain was not happy with it.
	"""

	reason_code: str
	message: str
	command: tuple[str, ...] | None = None
	returncode: int | None = None
	stderr: str | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"command": list(self.command) if self.command is not None else None,
			"returncode": self.returncode,
			"stderr": self.stderr,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.returncode is not None:
			parts.append(f"(exit status {self.returncode})")
		text = " ".join(parts)
		if self.stderr:
			text += "\n" + self.stderr.rstrip()
		return text


def output_paths(input_file: Path, binary_dir: Path) -> tuple[Path, Path]:
	"""
	Return `(cpp_path, binary_path)` inside `binary_dir` for `input_file`.

	The basename is the input filename with the source extension stripped,
	e.g. `src/foo.jakt` -> `build/foo.cpp`, `build/foo`.
	"""
	name = input_file.name
	if name.endswith(SOURCE_EXTENSION):
		name = name[: -len(SOURCE_EXTENSION)]
	return binary_dir / f"{name}.cpp", binary_dir / name


def compiler_command(cxx: str, cpp_path: Path, binary_path: Path, runtime_path: Path) -> list[str]:
	return [
		cxx,
		"-fcolor-diagnostics",
		"-std=c++20",
		*SUPPRESSED_WARNINGS,
		"-I",
		str(runtime_path),
		"-o",
		str(binary_path),
		str(cpp_path),
	]


def formatter_command(clang_format: str, cpp_path: Path, style_file: Optional[Path]) -> list[str]:
	cmd = [clang_format, "-i", str(cpp_path)]
	if style_file is not None:
		cmd.append(f"--style=file:{style_file}")
	return cmd


def _resolve_tool(tool: str) -> str:
	found = shutil.which(tool)
	if found is None:
		raise BuildError(E_TOOL_NOT_FOUND, f"'{tool}' not available")
	return found


def _run_captured(cmd: Sequence[str]) -> ProcessResult:
	res = subprocess.run(list(cmd), capture_output=True, text=True)
	return ProcessResult(command=tuple(cmd), returncode=res.returncode, stdout=res.stdout, stderr=res.stderr)


def run_compiler(cxx: str, cpp_path: Path, binary_path: Path, runtime_path: Path) -> ProcessResult:
	"""Compile the generated C++ into `binary_path`."""
	tool = _resolve_tool(cxx)
	cmd = compiler_command(tool, cpp_path, binary_path, runtime_path)
	result = _run_captured(cmd)
	if not result.ok:
		raise BuildError(
			E_CXX_FAILED,
			f"C++ compilation of {cpp_path} failed",
			command=result.command,
			returncode=result.returncode,
			stderr=result.stderr,
		)
	# Warnings from a successful build are still worth seeing.
	if result.stderr:
		sys.stderr.write(result.stderr)
	return result


def run_formatter(clang_format: str, cpp_path: Path, style_file: Optional[Path] = None) -> ProcessResult:
	"""Format `cpp_path` in place."""
	tool = _resolve_tool(clang_format)
	result = _run_captured(formatter_command(tool, cpp_path, style_file))
	if not result.ok:
		raise BuildError(
			E_FORMAT_FAILED,
			f"formatting {cpp_path} failed",
			command=result.command,
			returncode=result.returncode,
			stderr=result.stderr,
		)
	return result


def run_binary(binary_path: Path) -> int:
	"""Run the produced binary with inherited stdio and return its exit status."""
	res = subprocess.run([str(binary_path.resolve())])
	return res.returncode


__all__ = [
	"BuildError",
	"ProcessResult",
	"E_CXX_FAILED",
	"E_FORMAT_FAILED",
	"E_TOOL_NOT_FOUND",
	"SUPPRESSED_WARNINGS",
	"compiler_command",
	"formatter_command",
	"output_paths",
	"run_binary",
	"run_compiler",
	"run_formatter",
]
