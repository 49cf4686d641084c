# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

import pytest

from jaktc.compiler import CompilationContext
from jaktc.core.diagnostics import Diagnostic
from jaktc.core.span import Span
from jaktc.driver import Phases

REPO_ROOT = Path(__file__).resolve().parents[2]

HELLO_SOURCE = 'function main() {\n    println("Hello, {}!", "world")\n}\n'


@pytest.fixture
def write_source(tmp_path: Path) -> Callable[..., Path]:
	"""Write a .jakt file under tmp_path and return its path."""

	def _write(content: str = HELLO_SOURCE, name: str = "main.jakt") -> Path:
		path = tmp_path / name
		path.parent.mkdir(parents=True, exist_ok=True)
		path.write_text(content, encoding="utf-8")
		return path

	return _write


@pytest.fixture
def make_context(write_source) -> Callable[..., CompilationContext]:
	"""A context with `content` registered as the current file."""

	def _make(content: str, name: str = "main.jakt") -> CompilationContext:
		ctx = CompilationContext()
		ctx.set_current_file(ctx.register_file(write_source(content, name)))
		return ctx

	return _make


@pytest.fixture
def runtime_path() -> Path:
	return REPO_ROOT / "runtime"


class RecordingPhases:
	"""
	Stand-in phase functions that record their invocation order.

	Phases named in `failing` append one diagnostic (at offset 0 of the
	current file) and keep going, like the real phases do.
	"""

	GENERATED = "// generated\nint main() { return 0; }\n"

	def __init__(self, failing: Iterable[str] = ()) -> None:
		self.failing = set(failing)
		self.calls: list[str] = []
		self.debug_info: list[bool] = []

	def _enter(self, context: CompilationContext, phase: str) -> None:
		self.calls.append(phase)
		if phase in self.failing:
			context.record_error(
				Diagnostic(
					message=f"{phase} failed",
					span=Span(file_id=context.current_file, start=0, end=1),
					phase=phase,
				)
			)

	def lex(self, context: CompilationContext) -> list[str]:
		self._enter(context, "lex")
		return ["tok"]

	def parse(self, context: CompilationContext, tokens: list[str]) -> str:
		assert tokens == ["tok"]
		self._enter(context, "parse")
		return "tree"

	def typecheck(self, context: CompilationContext, tree: str) -> str:
		assert tree == "tree"
		self._enter(context, "typecheck")
		return "checked"

	def generate(self, context: CompilationContext, checked: str, debug_info: bool) -> str:
		assert checked == "checked"
		self.calls.append("generate")
		self.debug_info.append(debug_info)
		return self.GENERATED

	def phases(self) -> Phases:
		return Phases(lex=self.lex, parse=self.parse, typecheck=self.typecheck, generate=self.generate)


@pytest.fixture
def recording_phases() -> Callable[..., RecordingPhases]:
	return RecordingPhases
