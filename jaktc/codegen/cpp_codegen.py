# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CheckedProgram -> C++20 source text.

Layout of the emitted translation unit:

  #include <lib.h>                 (runtime header, found via -I <runtime>)
  namespace Jakt {
      <forward declarations>
      <function definitions>
  }
  int main() { ... Jakt::main() ... }

User code lives in `namespace Jakt` next to the runtime helpers (`println`,
`format`, ...), so a Jakt `main` never collides with the C++ entry point.
Identifiers that are C++ keywords, runtime type names (`String`, `i64`, ...)
or the `Jakt`/`JaktInternal`/`std` namespaces get a trailing underscore.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from jaktc.core.span import line_and_column
from jaktc.parser import ast as A
from jaktc.typechecker.checker import FORMAT_BUILTINS, CheckedFunction, CheckedProgram, FnSignature
from jaktc.typechecker.types import BUILTIN_TYPES, Type, TypeKind, lookup_type

INDENT = "    "

_CXX_KEYWORDS = frozenset(
	{
		"alignas", "alignof", "asm", "auto", "bool", "case", "catch", "char", "class", "const",
		"constexpr", "const_cast", "default", "delete", "do", "double", "dynamic_cast", "enum",
		"explicit", "export", "extern", "float", "for", "friend", "goto", "inline", "int", "long",
		"mutable", "namespace", "new", "noexcept", "nullptr", "operator", "private", "protected",
		"public", "register", "reinterpret_cast", "short", "signed", "sizeof", "static",
		"static_assert", "static_cast", "struct", "switch", "template", "this", "throw", "try",
		"typedef", "typeid", "typename", "union", "unsigned", "using", "virtual", "void",
		"volatile", "wchar_t", "co_await", "co_return", "co_yield", "concept", "requires",
		"char8_t", "char16_t", "char32_t", "decltype", "thread_local",
	}
)
# Names the emitted code relies on: runtime type aliases and the namespaces it qualifies with.
_RESERVED = _CXX_KEYWORDS | frozenset(BUILTIN_TYPES) | {"Jakt", "JaktInternal", "std"}

_BINARY_OPS = {"and": "&&", "or": "||"}
_UNSIGNED = {"u8", "u16", "u32", "u64", "usize"}


def mangle(name: str) -> str:
	return f"{name}_" if name in _RESERVED else name


def cpp_string_literal(value: str) -> str:
	"""Quote `value` as a C++ narrow string literal (UTF-8 passes through)."""
	out: List[str] = ['"']
	for ch in value:
		if ch == "\\":
			out.append("\\\\")
		elif ch == '"':
			out.append('\\"')
		elif ch == "\n":
			out.append("\\n")
		elif ch == "\t":
			out.append("\\t")
		elif ch == "\r":
			out.append("\\r")
		elif ord(ch) < 0x20 or ord(ch) == 0x7F:
			out.append(f"\\{ord(ch):03o}")
		else:
			out.append(ch)
	out.append('"')
	return "".join(out)


@dataclass
class CppModuleBuilder:
	"""Accumulates C++ lines for one translation unit."""

	program: CheckedProgram
	source_path: Optional[Path] = None
	source_text: Optional[str] = None
	debug_info: bool = False
	lines: List[str] = field(default_factory=list)
	_depth: int = 0

	def emit(self, line: str) -> None:
		self.lines.append(f"{INDENT * self._depth}{line}" if line else "")

	def render(self) -> str:
		return "\n".join(self.lines) + "\n"

	# --- module ------------------------------------------------------------

	def build(self) -> str:
		header = f"// Generated by jaktc from {self.source_path.name}" if self.source_path is not None else "// Generated by jaktc"
		self.emit(header)
		self.emit("#include <lib.h>")
		self.emit("")
		self.emit("namespace Jakt {")
		self.emit("")
		for fn in self.program.functions:
			self.emit(f"{self._signature(fn.signature)};")
		if self.program.functions:
			self.emit("")
		for fn in self.program.functions:
			self._emit_function(fn)
			self.emit("")
		self.emit("} // namespace Jakt")
		self._emit_entry_wrapper()
		return self.render()

	def _emit_entry_wrapper(self) -> None:
		main = self.program.function("main")
		if main is None:
			return
		self.emit("")
		self.emit("int main() {")
		self._depth += 1
		if main.signature.return_type.kind == TypeKind.INTEGER:
			self.emit("return static_cast<int>(Jakt::main());")
		else:
			self.emit("Jakt::main();")
			self.emit("return 0;")
		self._depth -= 1
		self.emit("}")

	def _signature(self, sig: FnSignature) -> str:
		params = ", ".join(
			f"{p.type.cpp}{'' if p.mutable else ' const'} {mangle(p.name)}" for p in sig.params
		)
		return f"{sig.return_type.cpp} {mangle(sig.name)}({params})"

	def _emit_function(self, fn: CheckedFunction) -> None:
		self.emit(f"{self._signature(fn.signature)} {{")
		self._emit_block_body(fn.body)
		self.emit("}")

	# --- statements --------------------------------------------------------

	def _emit_block_body(self, block: A.Block) -> None:
		self._depth += 1
		for stmt in block.statements:
			self._emit_stmt(stmt)
		self._depth -= 1

	def _emit_line_directive(self, stmt: A.Stmt) -> None:
		if not self.debug_info or self.source_text is None or self.source_path is None:
			return
		line, _column = line_and_column(self.source_text, stmt.span.start)
		self.lines.append(f"#line {line} {cpp_string_literal(str(self.source_path))}")

	def _emit_stmt(self, stmt: A.Stmt) -> None:
		self._emit_line_directive(stmt)
		if isinstance(stmt, A.LetStmt):
			ty = self._let_type(stmt)
			qualifier = "" if stmt.mutable else " const"
			self.emit(f"{ty.cpp}{qualifier} {mangle(stmt.name)} = {self.expr(stmt.value)};")
		elif isinstance(stmt, A.AssignStmt):
			self.emit(f"{mangle(stmt.name)} {stmt.op} {self.expr(stmt.value)};")
		elif isinstance(stmt, A.IfStmt):
			self._emit_if(stmt)
		elif isinstance(stmt, A.WhileStmt):
			self.emit(f"while ({self.expr(stmt.cond)}) {{")
			self._emit_block_body(stmt.body)
			self.emit("}")
		elif isinstance(stmt, A.LoopStmt):
			self.emit("for (;;) {")
			self._emit_block_body(stmt.body)
			self.emit("}")
		elif isinstance(stmt, A.BreakStmt):
			self.emit("break;")
		elif isinstance(stmt, A.ContinueStmt):
			self.emit("continue;")
		elif isinstance(stmt, A.ReturnStmt):
			if stmt.value is None:
				self.emit("return;")
			else:
				self.emit(f"return {self.expr(stmt.value)};")
		elif isinstance(stmt, A.BlockStmt):
			self.emit("{")
			self._emit_block_body(stmt.block)
			self.emit("}")
		elif isinstance(stmt, A.ExprStmt):
			self.emit(f"{self.expr(stmt.expr)};")
		else:
			raise TypeError(f"unhandled statement {type(stmt).__name__}")

	def _let_type(self, stmt: A.LetStmt) -> Type:
		if stmt.type_expr is not None:
			declared = lookup_type(stmt.type_expr.name)
			if declared is not None:
				return declared
		return self.program.type_of(stmt.value)

	def _emit_if(self, stmt: A.IfStmt) -> None:
		self.emit(f"if ({self.expr(stmt.cond)}) {{")
		branch: Optional[A.Block | A.IfStmt] = stmt
		while isinstance(branch, A.IfStmt):
			if branch is not stmt:
				self.emit(f"}} else if ({self.expr(branch.cond)}) {{")
			self._emit_block_body(branch.then_block)
			branch = branch.else_branch
		if branch is not None:
			self.emit("} else {")
			self._emit_block_body(branch)
		self.emit("}")

	# --- expressions -------------------------------------------------------

	def expr(self, expr: A.Expr) -> str:
		if isinstance(expr, A.NumberLit):
			return self._number(expr)
		if isinstance(expr, A.StringLit):
			return f"String({cpp_string_literal(expr.value)})"
		if isinstance(expr, A.BoolLit):
			return "true" if expr.value else "false"
		if isinstance(expr, A.Name):
			return mangle(expr.ident)
		if isinstance(expr, A.Call):
			return self._call(expr)
		if isinstance(expr, A.Unary):
			op = "!" if expr.op == "not" else expr.op
			return f"({op}{self.expr(expr.operand)})"
		if isinstance(expr, A.Binary):
			op = _BINARY_OPS.get(expr.op, expr.op)
			return f"({self.expr(expr.left)} {op} {self.expr(expr.right)})"
		raise TypeError(f"unhandled expression {type(expr).__name__}")

	def _number(self, expr: A.NumberLit) -> str:
		ty = self.program.type_of(expr)
		if ty.kind == TypeKind.FLOAT or expr.is_float:
			text = expr.text if expr.is_float else f"{expr.text}.0"
			return f"{text}f" if ty.name == "f32" else text
		if ty.name in _UNSIGNED:
			return f"static_cast<{ty.cpp}>({expr.text}ULL)"
		if ty.name == "i64" or ty.kind != TypeKind.INTEGER:
			return f"{expr.text}LL"
		return f"static_cast<{ty.cpp}>({expr.text})"

	def _call(self, call: A.Call) -> str:
		if call.callee in FORMAT_BUILTINS and call.args and isinstance(call.args[0].value, A.StringLit):
			fmt = cpp_string_literal(call.args[0].value.value)
			rest = [self.expr(arg.value) for arg in call.args[1:]]
			return f"Jakt::{call.callee}({', '.join([fmt, *rest])})"
		# Qualified so argument-dependent lookup cannot pull in std:: overloads.
		args = ", ".join(self.expr(arg.value) for arg in call.args)
		return f"Jakt::{mangle(call.callee)}({args})"


__all__ = ["CppModuleBuilder", "cpp_string_literal", "mangle"]
