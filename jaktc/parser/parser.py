# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lark-based parser for the Jakt subset.

The same `Lark` instance serves both phases: `jaktc.lexer` tokenizes with
`PARSER.lex`, and `parse_tokens` feeds that token list to the LALR parser
through lark's interactive interface, so the lexer output really is the
parser input.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional

from lark import Lark, Token, Tree
from lark.lexer import PatternStr

from jaktc.core.diagnostics import Diagnostic
from jaktc.core.file_id import FileId
from jaktc.core.span import Span

from .ast import (
	Arg,
	AssignStmt,
	Binary,
	Block,
	BlockStmt,
	BoolLit,
	BreakStmt,
	Call,
	ContinueStmt,
	Expr,
	ExprStmt,
	FunctionDecl,
	IfStmt,
	LetStmt,
	LoopStmt,
	Name,
	NumberLit,
	Param,
	Program,
	ReturnStmt,
	Stmt,
	StringLit,
	TypeExpr,
	Unary,
	WhileStmt,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)


def parse_tokens(tokens: Iterable[Token]) -> Tree:
	"""
	Run the LALR parser over an already-lexed token sequence.

	Raises lark's `UnexpectedToken` on a syntax error (including a premature
	end of input, reported as an unexpected `$END`).
	"""
	interactive = PARSER.parse_interactive()
	last: Optional[Token] = None
	for tok in tokens:
		interactive.feed_token(tok)
		last = tok
	if last is not None:
		eof = Token.new_borrow_pos("$END", "", last)
	else:
		eof = Token("$END", "", 0, 1, 1)
	return interactive.feed_token(eof)


def describe_terminal(name: str) -> str:
	"""User-facing spelling for a grammar terminal (`'('` rather than `LPAR`)."""
	if name == "$END":
		return "end of file"
	try:
		term = PARSER.get_terminal(name)
	except KeyError:
		return name
	if isinstance(term.pattern, PatternStr):
		return f"'{term.pattern.value}'"
	return name.lower()


_ESCAPE_RE = re.compile(r"\\(x[0-9A-Fa-f]{2}|u[0-9A-Fa-f]{4}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}


def decode_string_token(tok: Token) -> str:
	"""
	Decode a STRING token body.

	Supported escapes: `\\n \\t \\r \\0 \\\\ \\" \\'`, `\\xHH` and `\\uHHHH`. Anything else
	raises ValueError naming the offending sequence, as does a `\\u` surrogate.
	"""

	def _replace(match: re.Match) -> str:
		esc = match.group(1)
		if esc in _SIMPLE_ESCAPES:
			return _SIMPLE_ESCAPES[esc]
		if len(esc) > 1:
			code = int(esc[1:], 16)
			if 0xD800 <= code <= 0xDFFF:
				raise ValueError(f"invalid escape sequence '\\{esc}': lone surrogate")
			return chr(code)
		raise ValueError(f"invalid escape sequence '\\{esc}'")

	return _ESCAPE_RE.sub(_replace, tok.value[1:-1])


class AstBuilder:
	"""Converts the lark tree into `jaktc.parser.ast` nodes with file spans."""

	def __init__(self, file_id: Optional[FileId]) -> None:
		self.file_id = file_id
		# Problems found while building nodes (e.g. bad string escapes).
		self.diagnostics: List[Diagnostic] = []

	def _span(self, node: Tree | Token) -> Span:
		if isinstance(node, Token):
			return Span.from_token(self.file_id, node)
		return Span.from_meta(self.file_id, node.meta)

	def program(self, tree: Tree) -> Program:
		functions = [self.function(child) for child in tree.children if isinstance(child, Tree)]
		return Program(functions=functions)

	def function(self, tree: Tree) -> FunctionDecl:
		name_tok = tree.children[0]
		params: List[Param] = []
		return_type: Optional[TypeExpr] = None
		throws = False
		body: Optional[Block] = None
		for child in tree.children[1:]:
			if isinstance(child, Token) and child.type == "THROWS":
				throws = True
			elif isinstance(child, Tree) and child.data == "params":
				params = [self.param(p) for p in child.children]
			elif isinstance(child, Tree) and child.data == "type":
				return_type = self.type_expr(child)
			elif isinstance(child, Tree) and child.data == "block":
				body = self.block(child)
		assert body is not None, "grammar guarantees a function body"
		return FunctionDecl(
			name=str(name_tok),
			params=params,
			return_type=return_type,
			body=body,
			span=self._span(tree),
			throws=throws,
		)

	def param(self, tree: Tree) -> Param:
		anon = False
		mutable = False
		name: Optional[Token] = None
		type_expr: Optional[TypeExpr] = None
		for child in tree.children:
			if isinstance(child, Tree):
				type_expr = self.type_expr(child)
			elif child.type == "ANON":
				anon = True
			elif child.type == "MUT":
				mutable = True
			elif child.type == "NAME":
				name = child
		assert name is not None and type_expr is not None
		return Param(name=str(name), type_expr=type_expr, span=self._span(tree), anon=anon, mutable=mutable)

	def type_expr(self, tree: Tree) -> TypeExpr:
		return TypeExpr(name=str(tree.children[0]), span=self._span(tree))

	def block(self, tree: Tree) -> Block:
		return Block(statements=[self.stmt(child) for child in tree.children], span=self._span(tree))

	def stmt(self, tree: Tree) -> Stmt:
		kind = tree.data
		span = self._span(tree)
		kids = tree.children
		if kind == "let_stmt":
			type_expr = None
			for child in kids[2:-1]:
				if isinstance(child, Tree) and child.data == "type":
					type_expr = self.type_expr(child)
			return LetStmt(
				name=str(kids[1]),
				type_expr=type_expr,
				value=self.expr(kids[-1]),
				span=span,
				mutable=kids[0].type == "MUT",
			)
		if kind == "assign_stmt":
			return AssignStmt(name=str(kids[0]), op=str(kids[1].children[0]), value=self.expr(kids[2]), span=span)
		if kind == "if_stmt":
			return self.if_stmt(tree)
		if kind == "while_stmt":
			return WhileStmt(cond=self.expr(kids[0]), body=self.block(kids[1]), span=span)
		if kind == "loop_stmt":
			return LoopStmt(body=self.block(kids[0]), span=span)
		if kind == "break_stmt":
			return BreakStmt(span=span)
		if kind == "continue_stmt":
			return ContinueStmt(span=span)
		if kind == "return_stmt":
			return ReturnStmt(value=self.expr(kids[0]) if kids else None, span=span)
		if kind == "block":
			return BlockStmt(block=self.block(tree), span=span)
		if kind == "expr_stmt":
			return ExprStmt(expr=self.expr(kids[0]), span=span)
		raise ValueError(f"unexpected statement node {kind!r}")

	def if_stmt(self, tree: Tree) -> IfStmt:
		kids = tree.children
		else_branch: Optional[Block | IfStmt] = None
		if len(kids) > 2:
			tail = kids[2]
			else_branch = self.if_stmt(tail) if tail.data == "if_stmt" else self.block(tail)
		return IfStmt(cond=self.expr(kids[0]), then_block=self.block(kids[1]), span=self._span(tree), else_branch=else_branch)

	def expr(self, node: Tree | Token) -> Expr:
		span = self._span(node)
		kind = node.data
		kids = node.children
		if kind == "number":
			return NumberLit(text=str(kids[0]), span=span)
		if kind == "string":
			try:
				value = decode_string_token(kids[0])
			except ValueError as err:
				self.diagnostics.append(Diagnostic(message=str(err), span=span, phase="parser"))
				value = kids[0].value[1:-1]
			return StringLit(value=value, span=span)
		if kind == "true":
			return BoolLit(value=True, span=span)
		if kind == "false":
			return BoolLit(value=False, span=span)
		if kind == "name":
			return Name(ident=str(kids[0]), span=span)
		if kind == "call":
			args: List[Arg] = []
			if len(kids) > 1:
				args = [self.arg(a) for a in kids[1].children]
			return Call(callee=str(kids[0]), args=args, span=span)
		if kind == "unary":
			return Unary(op=str(kids[0].children[0]), operand=self.expr(kids[1]), span=span)
		if kind == "binary":
			return Binary(op=str(kids[1].children[0]), left=self.expr(kids[0]), right=self.expr(kids[2]), span=span)
		raise ValueError(f"unexpected expression node {kind!r}")

	def arg(self, tree: Tree) -> Arg:
		kids = tree.children
		if len(kids) == 2:
			return Arg(label=str(kids[0]), value=self.expr(kids[1]), span=self._span(tree))
		return Arg(label=None, value=self.expr(kids[0]), span=self._span(tree))


def build_program(tree: Tree, file_id: Optional[FileId] = None) -> Program:
	return AstBuilder(file_id).program(tree)


def parse_source(source: str, file_id: Optional[FileId] = None) -> Program:
	"""Lex + parse a source string in one go (raises lark errors directly)."""
	return build_program(parse_tokens(PARSER.lex(source)), file_id)


__all__ = ["PARSER", "AstBuilder", "build_program", "decode_string_token", "describe_terminal", "parse_source", "parse_tokens"]
