# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure for the lexer/parser/typechecker phases.

Phases never raise for user errors; they append a Diagnostic to the
CompilationContext and keep going. The driver decides at the gate whether
the run can continue.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .span import Span, line_and_column


@dataclass
class Diagnostic:
	"""Represents a compiler diagnostic (error/warning/etc.)."""

	message: str
	span: Span = field(default_factory=Span)
	severity: str = "error"
	# Phase that produced the diagnostic ("lexer", "parser", "typechecker").
	phase: str | None = None
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()


def render_diagnostic(diag: Diagnostic, path: Path | None, contents: str | None) -> str:
	"""
	Render a diagnostic for humans:

	    Error: variable 'x' not found
	    ----- hello.jakt:3:19
	       3 |     println("{}", x)
	         |                   ^
	    -----

	When the file is unknown only the header line (plus notes) is produced.
	"""
	lines = [f"{diag.severity.capitalize()}: {diag.message}"]
	if path is not None and contents is not None:
		line_no, column = line_and_column(contents, diag.span.start)
		lines.append(f"----- {path}:{line_no}:{column}")
		source_lines = contents.splitlines()
		if 0 < line_no <= len(source_lines):
			text = source_lines[line_no - 1]
			gutter = f"{line_no:>4} | "
			lines.append(f"{gutter}{text}")
			width = max(1, min(diag.span.end, diag.span.start + len(text) - column + 1) - diag.span.start)
			lines.append(" " * (len(gutter) - 2) + "| " + " " * (column - 1) + "^" * width)
		lines.append("-----")
	for note in diag.notes:
		lines.append(f"note: {note}")
	return "\n".join(lines)


def diagnostic_to_json(diag: Diagnostic, path: Path | None, contents: str | None) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	line = None
	column = None
	if contents is not None:
		line, column = line_and_column(contents, diag.span.start)
	return {
		"phase": diag.phase,
		"message": diag.message,
		"severity": diag.severity,
		"file": str(path) if path is not None else None,
		"line": line,
		"column": column,
		"notes": list(diag.notes),
	}


__all__ = ["Diagnostic", "render_diagnostic", "diagnostic_to_json"]
