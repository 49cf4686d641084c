# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compilation context shared by every phase of a single jaktc run.

The context owns the registered source files and the diagnostics sink.
Phases receive it explicitly; they may read files and append diagnostics,
but the error list itself is only exposed as a tuple so nothing can drop or
reorder what an earlier phase reported.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from jaktc.core.diagnostics import Diagnostic, diagnostic_to_json, render_diagnostic
from jaktc.core.file_id import FileId


@dataclass
class SourceFile:
	"""A registered source file: the path as given plus its full contents."""

	path: Path
	contents: str


class CompilationContext:
	"""
	Process-scoped mutable state for one compilation.

	Lifecycle: constructed empty, populated by `register_file` and by phases
	calling `record_error`, then read by the driver at the gate.
	"""

	def __init__(
		self,
		*,
		debug_print: bool = False,
		dump_lexer: bool = False,
		dump_parser: bool = False,
		dump_typechecker: bool = False,
	) -> None:
		self.files: List[SourceFile] = []
		self.file_ids: Dict[Path, FileId] = {}
		self._errors: List[Diagnostic] = []
		self._current_file: Optional[FileId] = None
		self.debug_print = debug_print
		self.dump_lexer = dump_lexer
		self.dump_parser = dump_parser
		self.dump_typechecker = dump_typechecker

	# --- files -------------------------------------------------------------

	def register_file(self, path: Path | str) -> FileId:
		"""
		Register `path` and return its FileId.

		Registration is idempotent per normalized path: a second call returns
		the existing id without touching the filesystem. An unreadable file
		raises OSError and a file that is not UTF-8 raises UnicodeDecodeError;
		callers treat both as fatal.
		"""
		path = Path(path)
		key = path.resolve()
		existing = self.file_ids.get(key)
		if existing is not None:
			return existing
		contents = path.read_text(encoding="utf-8")
		file_id = FileId(len(self.files))
		self.files.append(SourceFile(path=path, contents=contents))
		self.file_ids[key] = file_id
		self.dbg_println(f"registered {path} as {file_id}")
		return file_id

	def _file(self, file_id: FileId) -> SourceFile:
		if not 0 <= file_id.index < len(self.files):
			raise ValueError(f"unknown file id {file_id}")
		return self.files[file_id.index]

	def get_file_path(self, file_id: FileId) -> Path:
		return self._file(file_id).path

	def get_file_contents(self, file_id: FileId) -> str:
		return self._file(file_id).contents

	def set_current_file(self, file_id: FileId) -> None:
		"""Select the file that subsequent phases attribute diagnostics to."""
		self._file(file_id)
		self._current_file = file_id

	@property
	def current_file(self) -> FileId:
		if self._current_file is None:
			raise RuntimeError("no current file set; call set_current_file() before running phases")
		return self._current_file

	def current_file_contents(self) -> str:
		return self.get_file_contents(self.current_file)

	# --- diagnostics -------------------------------------------------------

	@property
	def errors(self) -> tuple[Diagnostic, ...]:
		return tuple(self._errors)

	def record_error(self, diagnostic: Diagnostic) -> None:
		self._errors.append(diagnostic)

	def has_errors(self) -> bool:
		return bool(self._errors)

	def _locate(self, diag: Diagnostic) -> tuple[Path | None, str | None]:
		file_id = diag.span.file_id
		if file_id is None or not 0 <= file_id.index < len(self.files):
			return None, None
		source = self.files[file_id.index]
		return source.path, source.contents

	def print_errors(self, stream: TextIO | None = None) -> None:
		"""Render every recorded diagnostic, in detection order."""
		out = stream if stream is not None else sys.stderr
		for diag in self._errors:
			path, contents = self._locate(diag)
			print(render_diagnostic(diag, path, contents), file=out)

	def diagnostics_json(self) -> list[dict]:
		out: list[dict] = []
		for diag in self._errors:
			path, contents = self._locate(diag)
			out.append(diagnostic_to_json(diag, path, contents))
		return out

	def print_errors_json(self, stream: TextIO | None = None) -> None:
		out = stream if stream is not None else sys.stdout
		print(json.dumps({"exit_code": 1, "diagnostics": self.diagnostics_json()}), file=out)

	# --- debug output ------------------------------------------------------

	def dbg_println(self, message: str) -> None:
		if self.debug_print:
			print(f"[debug] {message}", file=sys.stderr)


__all__ = ["CompilationContext", "SourceFile"]
