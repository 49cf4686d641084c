"""
Parse phase: token list -> `Program` AST.

Syntax errors become parser-phase diagnostics on the context; the phase then
returns an empty Program so the later phases still run (the driver gate is
what stops the pipeline).
"""

from __future__ import annotations

from typing import List

from lark import Token
from lark.exceptions import UnexpectedInput

from jaktc.compiler import CompilationContext
from jaktc.core.diagnostics import Diagnostic
from jaktc.core.span import Span

from . import ast
from .ast import Program
from .parser import PARSER, AstBuilder, describe_terminal, parse_source, parse_tokens


def parse(context: CompilationContext, tokens: List[Token]) -> Program:
	file_id = context.current_file
	context.dbg_println(f"parsing {len(tokens)} tokens")
	try:
		tree = parse_tokens(tokens)
	except UnexpectedInput as err:
		tok = getattr(err, "token", None)
		if tok is None or tok.type == "$END":
			message = "unexpected end of file"
			offset = len(context.current_file_contents())
			span = Span(file_id=file_id, start=offset, end=offset)
		else:
			message = f"unexpected token '{tok.value}'"
			span = Span.from_token(file_id, tok)
		notes: list[str] = []
		expected = sorted(getattr(err, "expected", None) or ())
		if expected:
			notes.append("expected one of: " + ", ".join(describe_terminal(name) for name in expected))
		context.record_error(Diagnostic(message=message, span=span, phase="parser", notes=notes))
		return Program()
	builder = AstBuilder(file_id)
	program = builder.program(tree)
	for diag in builder.diagnostics:
		context.record_error(diag)
	return program


__all__ = ["PARSER", "Program", "ast", "parse", "parse_source", "parse_tokens"]
