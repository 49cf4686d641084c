# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lex phase: current file contents -> list of lark Tokens.

Tokenization uses the parser's own grammar terminals (see
`jaktc.parser.parser.PARSER`). An unexpected character is reported once,
blanked out, and lexing restarts; offsets are unchanged because the blank
replaces exactly one character.
"""

from __future__ import annotations

from typing import List

from lark import Token
from lark.exceptions import UnexpectedCharacters

from jaktc.compiler import CompilationContext
from jaktc.core.diagnostics import Diagnostic
from jaktc.core.span import Span
from jaktc.parser.parser import PARSER


def _describe_bad_char(ch: str) -> str:
	if ch == '"':
		return "unterminated string literal"
	return f"unexpected character {ch!r}"


def lex(context: CompilationContext) -> List[Token]:
	file_id = context.current_file
	text = context.current_file_contents()
	context.dbg_println(f"lexing {context.get_file_path(file_id)} ({len(text)} chars)")
	while True:
		tokens: List[Token] = []
		try:
			for tok in PARSER.lex(text):
				tokens.append(tok)
			break
		except UnexpectedCharacters as err:
			pos = err.pos_in_stream
			context.record_error(
				Diagnostic(
					message=_describe_bad_char(text[pos]),
					span=Span(file_id=file_id, start=pos, end=pos + 1),
					phase="lexer",
				)
			)
			text = text[:pos] + " " + text[pos + 1 :]
	return tokens


__all__ = ["lex"]
