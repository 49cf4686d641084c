# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Type checker for the Jakt subset.

The checker walks the parsed `Program` once, resolving names against nested
lexical scopes and assigning a `Type` to every expression. Problems are
recorded on the CompilationContext as typechecker-phase diagnostics and the
walk continues; ill-typed expressions get `UNKNOWN`, which is compatible with
everything, so a single mistake produces a single diagnostic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from jaktc.compiler import CompilationContext
from jaktc.core.diagnostics import Diagnostic
from jaktc.core.span import Span
from jaktc.parser import ast as A

from .types import BOOL, F64, I64, STRING, UNKNOWN, VOID, Type, TypeKind, compatible, lookup_type

# Builtins taking a format string followed by `{}` arguments.
FORMAT_BUILTINS: Dict[str, Type] = {
	"print": VOID,
	"println": VOID,
	"eprint": VOID,
	"eprintln": VOID,
	"format": STRING,
}

_INTEGER_RANGES: Dict[str, tuple[int, int]] = {
	"i8": (-(2**7), 2**7 - 1),
	"i16": (-(2**15), 2**15 - 1),
	"i32": (-(2**31), 2**31 - 1),
	"i64": (-(2**63), 2**63 - 1),
	"u8": (0, 2**8 - 1),
	"u16": (0, 2**16 - 1),
	"u32": (0, 2**32 - 1),
	"u64": (0, 2**64 - 1),
	"usize": (0, 2**64 - 1),
}

_ARITHMETIC_OPS = {"+", "-", "*", "/", "%"}
_EQUALITY_OPS = {"==", "!="}
_ORDERING_OPS = {"<", "<=", ">", ">="}
_LOGICAL_OPS = {"and", "or"}


@dataclass
class ParamInfo:
	name: str
	type: Type
	anon: bool = False
	mutable: bool = False


@dataclass
class FnSignature:
	name: str
	params: List[ParamInfo]
	return_type: Type
	throws: bool = False

	def render(self) -> str:
		params = ", ".join(
			f"{'anon ' if p.anon else ''}{'mut ' if p.mutable else ''}{p.name}: {p.type}" for p in self.params
		)
		throws = " throws" if self.throws else ""
		return f"function {self.name}({params}){throws} -> {self.return_type}"


@dataclass
class CheckedFunction:
	signature: FnSignature
	body: A.Block

	@property
	def name(self) -> str:
		return self.signature.name


@dataclass
class CheckedProgram:
	"""Typechecker output consumed by codegen."""

	functions: List[CheckedFunction] = field(default_factory=list)
	expr_types: Dict[int, Type] = field(default_factory=dict)  # keyed by id(expr)

	def type_of(self, expr: A.Expr) -> Type:
		return self.expr_types.get(id(expr), UNKNOWN)

	def function(self, name: str) -> Optional[CheckedFunction]:
		return next((fn for fn in self.functions if fn.name == name), None)

	def render(self) -> str:
		lines: List[str] = []
		for fn in self.functions:
			lines.append(fn.signature.render())
		lines.append(f"({len(self.expr_types)} typed expressions)")
		return "\n".join(lines)


@dataclass
class _Binding:
	type: Type
	mutable: bool
	span: Span


class _Scope:
	def __init__(self, parent: Optional["_Scope"] = None) -> None:
		self.parent = parent
		self.bindings: Dict[str, _Binding] = {}

	def lookup(self, name: str) -> Optional[_Binding]:
		scope: Optional[_Scope] = self
		while scope is not None:
			found = scope.bindings.get(name)
			if found is not None:
				return found
			scope = scope.parent
		return None


class TypeChecker:
	def __init__(self, context: CompilationContext) -> None:
		self.context = context
		self.signatures: Dict[str, FnSignature] = {}
		self.checked = CheckedProgram()
		self._current: Optional[FnSignature] = None
		self._loop_depth = 0

	def _error(self, message: str, span: Span, notes: Optional[List[str]] = None) -> None:
		self.context.record_error(Diagnostic(message=message, span=span, phase="typechecker", notes=notes or []))

	def _mismatch(self, expected: Type, actual: Type, span: Span) -> None:
		self._error(f"type mismatch: expected '{expected}', but got '{actual}'", span)

	def _resolve_type(self, type_expr: Optional[A.TypeExpr], default: Type = VOID) -> Type:
		if type_expr is None:
			return default
		found = lookup_type(type_expr.name)
		if found is None:
			self._error(f"unknown type '{type_expr.name}'", type_expr.span)
			return UNKNOWN
		return found

	# --- program level -----------------------------------------------------

	def check(self, program: A.Program) -> CheckedProgram:
		decls: List[A.FunctionDecl] = []
		for decl in program.functions:
			if self._collect_signature(decl):
				decls.append(decl)
		if not self.context.has_errors() or program.functions:
			self._check_entry_point()
		for decl in decls:
			self._check_function(decl)
		return self.checked

	def _collect_signature(self, decl: A.FunctionDecl) -> bool:
		if decl.name in FORMAT_BUILTINS:
			self._error(f"cannot redefine builtin function '{decl.name}'", decl.span)
			return False
		if decl.name in self.signatures:
			self._error(f"function '{decl.name}' is already defined", decl.span)
			return False
		params: List[ParamInfo] = []
		seen: Dict[str, A.Param] = {}
		for param in decl.params:
			if param.name in seen:
				self._error(f"duplicate parameter '{param.name}' in function '{decl.name}'", param.span)
			seen[param.name] = param
			ty = self._resolve_type(param.type_expr)
			if ty == VOID:
				self._error(f"parameter '{param.name}' cannot have type 'void'", param.type_expr.span)
				ty = UNKNOWN
			params.append(ParamInfo(name=param.name, type=ty, anon=param.anon, mutable=param.mutable))
		sig = FnSignature(
			name=decl.name,
			params=params,
			return_type=self._resolve_type(decl.return_type),
			throws=decl.throws,
		)
		self.signatures[decl.name] = sig
		return True

	def _check_entry_point(self) -> None:
		main = self.signatures.get("main")
		if main is None:
			self._error("no 'main' function found", Span(file_id=self.context.current_file))
			return
		if main.params:
			self._error("function 'main' must not take parameters", Span(file_id=self.context.current_file))
		if main.return_type.kind not in (TypeKind.VOID, TypeKind.INTEGER, TypeKind.UNKNOWN):
			self._error(
				f"function 'main' must return 'void' or an integer type, not '{main.return_type}'",
				Span(file_id=self.context.current_file),
			)

	def _check_function(self, decl: A.FunctionDecl) -> None:
		sig = self.signatures[decl.name]
		self._current = sig
		self._loop_depth = 0
		scope = _Scope()
		for param, info in zip(decl.params, sig.params):
			scope.bindings.setdefault(param.name, _Binding(type=info.type, mutable=info.mutable, span=param.span))
		self._check_block(decl.body, scope)
		if sig.return_type.kind not in (TypeKind.VOID, TypeKind.UNKNOWN) and not _always_returns(decl.body):
			self._error(f"function '{decl.name}' does not return a value on every path", decl.span)
		self.checked.functions.append(CheckedFunction(signature=sig, body=decl.body))
		self._current = None

	# --- statements --------------------------------------------------------

	def _check_block(self, block: A.Block, scope: _Scope) -> None:
		for stmt in block.statements:
			self._check_stmt(stmt, scope)

	def _check_stmt(self, stmt: A.Stmt, scope: _Scope) -> None:
		if isinstance(stmt, A.LetStmt):
			self._check_let(stmt, scope)
		elif isinstance(stmt, A.AssignStmt):
			self._check_assign(stmt, scope)
		elif isinstance(stmt, A.IfStmt):
			self._check_if(stmt, scope)
		elif isinstance(stmt, A.WhileStmt):
			self._expect_bool(stmt.cond, scope)
			self._check_loop_body(stmt.body, scope)
		elif isinstance(stmt, A.LoopStmt):
			self._check_loop_body(stmt.body, scope)
		elif isinstance(stmt, (A.BreakStmt, A.ContinueStmt)):
			if self._loop_depth == 0:
				keyword = "break" if isinstance(stmt, A.BreakStmt) else "continue"
				self._error(f"'{keyword}' outside of a loop", stmt.span)
		elif isinstance(stmt, A.ReturnStmt):
			self._check_return(stmt, scope)
		elif isinstance(stmt, A.BlockStmt):
			self._check_block(stmt.block, _Scope(scope))
		elif isinstance(stmt, A.ExprStmt):
			self._check_expr(stmt.expr, scope)
		else:
			raise TypeError(f"unhandled statement {type(stmt).__name__}")

	def _check_let(self, stmt: A.LetStmt, scope: _Scope) -> None:
		declared = self._resolve_type(stmt.type_expr, default=UNKNOWN) if stmt.type_expr is not None else None
		value_ty = self._check_expr(stmt.value, scope, expected=declared)
		if value_ty == VOID:
			self._error(f"cannot bind '{stmt.name}' to an expression of type 'void'", stmt.value.span)
			value_ty = UNKNOWN
		if declared is not None and not compatible(declared, value_ty):
			self._mismatch(declared, value_ty, stmt.value.span)
		previous = scope.bindings.get(stmt.name)
		if previous is not None:
			self._error(f"redefinition of variable '{stmt.name}'", stmt.span)
			return
		scope.bindings[stmt.name] = _Binding(
			type=declared if declared is not None else value_ty,
			mutable=stmt.mutable,
			span=stmt.span,
		)

	def _check_assign(self, stmt: A.AssignStmt, scope: _Scope) -> None:
		binding = scope.lookup(stmt.name)
		if binding is None:
			self._error(f"variable '{stmt.name}' not found", stmt.span)
			self._check_expr(stmt.value, scope)
			return
		if not binding.mutable:
			self._error(
				f"cannot assign to immutable variable '{stmt.name}'",
				stmt.span,
				notes=[f"declare it with 'mut {stmt.name}' to allow assignment"],
			)
		value_ty = self._check_expr(stmt.value, scope, expected=binding.type)
		if stmt.op != "=":
			arith = stmt.op[0]
			if not self._arithmetic_ok(arith, binding.type):
				self._error(f"operator '{stmt.op}' cannot be applied to '{binding.type}'", stmt.span)
				return
		if not compatible(binding.type, value_ty):
			self._mismatch(binding.type, value_ty, stmt.value.span)

	def _check_if(self, stmt: A.IfStmt, scope: _Scope) -> None:
		self._expect_bool(stmt.cond, scope)
		self._check_block(stmt.then_block, _Scope(scope))
		if isinstance(stmt.else_branch, A.IfStmt):
			self._check_if(stmt.else_branch, scope)
		elif stmt.else_branch is not None:
			self._check_block(stmt.else_branch, _Scope(scope))

	def _check_loop_body(self, body: A.Block, scope: _Scope) -> None:
		self._loop_depth += 1
		try:
			self._check_block(body, _Scope(scope))
		finally:
			self._loop_depth -= 1

	def _check_return(self, stmt: A.ReturnStmt, scope: _Scope) -> None:
		assert self._current is not None
		expected = self._current.return_type
		if stmt.value is None:
			if expected.kind not in (TypeKind.VOID, TypeKind.UNKNOWN):
				self._error(f"missing return value of type '{expected}'", stmt.span)
			return
		if expected == VOID:
			self._check_expr(stmt.value, scope)
			self._error(f"function '{self._current.name}' does not return a value", stmt.value.span)
			return
		actual = self._check_expr(stmt.value, scope, expected=expected)
		if not compatible(expected, actual):
			self._mismatch(expected, actual, stmt.value.span)

	# --- expressions -------------------------------------------------------

	def _expect_bool(self, expr: A.Expr, scope: _Scope) -> None:
		ty = self._check_expr(expr, scope, expected=BOOL)
		if not compatible(BOOL, ty):
			self._error(f"condition must be of type 'bool', not '{ty}'", expr.span)

	def _check_expr(self, expr: A.Expr, scope: _Scope, expected: Optional[Type] = None) -> Type:
		ty = self._infer(expr, scope, expected)
		self.checked.expr_types[id(expr)] = ty
		return ty

	def _infer(self, expr: A.Expr, scope: _Scope, expected: Optional[Type]) -> Type:
		if isinstance(expr, A.NumberLit):
			return self._check_number(expr, expected)
		if isinstance(expr, A.StringLit):
			return STRING
		if isinstance(expr, A.BoolLit):
			return BOOL
		if isinstance(expr, A.Name):
			binding = scope.lookup(expr.ident)
			if binding is None:
				if expr.ident in self.signatures or expr.ident in FORMAT_BUILTINS:
					self._error(f"function '{expr.ident}' used as a value", expr.span)
				else:
					self._error(f"variable '{expr.ident}' not found", expr.span)
				return UNKNOWN
			return binding.type
		if isinstance(expr, A.Call):
			return self._check_call(expr, scope)
		if isinstance(expr, A.Unary):
			return self._check_unary(expr, scope, expected)
		if isinstance(expr, A.Binary):
			return self._check_binary(expr, scope, expected)
		raise TypeError(f"unhandled expression {type(expr).__name__}")

	def _check_number(self, expr: A.NumberLit, expected: Optional[Type], negated: bool = False) -> Type:
		if expr.is_float:
			if expected is not None and expected.kind == TypeKind.FLOAT:
				return expected
			return F64
		ty = expected if expected is not None and expected.is_numeric else I64
		bounds = _INTEGER_RANGES.get(ty.name)
		value = -int(expr.text) if negated else int(expr.text)
		if bounds is not None and not bounds[0] <= value <= bounds[1]:
			self._error(f"integer literal {value} out of range for '{ty}'", expr.span)
		return ty

	def _check_call(self, call: A.Call, scope: _Scope) -> Type:
		if call.callee in FORMAT_BUILTINS:
			return self._check_format_call(call, scope)
		sig = self.signatures.get(call.callee)
		if sig is None:
			self._error(f"function '{call.callee}' not found", call.span)
			for arg in call.args:
				self._check_expr(arg.value, scope)
			return UNKNOWN
		if len(call.args) != len(sig.params):
			self._error(
				f"function '{call.callee}' expects {len(sig.params)} argument(s), got {len(call.args)}",
				call.span,
			)
			for arg in call.args:
				self._check_expr(arg.value, scope)
			return sig.return_type
		for index, (arg, param) in enumerate(zip(call.args, sig.params), start=1):
			if arg.label is None and not param.anon:
				self._error(f"missing label '{param.name}' for argument {index} of '{call.callee}'", arg.span)
			elif arg.label is not None and arg.label != param.name:
				self._error(
					f"wrong label '{arg.label}' for argument {index} of '{call.callee}', expected '{param.name}'",
					arg.span,
				)
			actual = self._check_expr(arg.value, scope, expected=param.type)
			if not compatible(param.type, actual):
				self._mismatch(param.type, actual, arg.value.span)
		return sig.return_type

	def _check_format_call(self, call: A.Call, scope: _Scope) -> Type:
		result = FORMAT_BUILTINS[call.callee]
		if not call.args or not isinstance(call.args[0].value, A.StringLit):
			self._error(f"'{call.callee}' expects a string literal format as its first argument", call.span)
			for arg in call.args:
				self._check_expr(arg.value, scope)
			return result
		fmt = call.args[0].value
		self._check_expr(fmt, scope)
		placeholders = fmt.value.count("{}")
		given = len(call.args) - 1
		if placeholders != given:
			self._error(
				f"format string for '{call.callee}' has {placeholders} placeholder(s) but {given} argument(s) were given",
				call.span,
			)
		for arg in call.args[1:]:
			ty = self._check_expr(arg.value, scope)
			if ty == VOID:
				self._error("cannot format a value of type 'void'", arg.value.span)
		return result

	def _check_unary(self, expr: A.Unary, scope: _Scope, expected: Optional[Type]) -> Type:
		if expr.op == "not":
			ty = self._check_expr(expr.operand, scope, expected=BOOL)
			if not compatible(BOOL, ty):
				self._error(f"operator 'not' expects 'bool', got '{ty}'", expr.span)
			return BOOL
		if isinstance(expr.operand, A.NumberLit) and not expr.operand.is_float:
			ty = self._check_number(expr.operand, expected, negated=True)
			self.checked.expr_types[id(expr.operand)] = ty
		else:
			ty = self._check_expr(expr.operand, scope, expected=expected)
		if ty.kind != TypeKind.UNKNOWN and not ty.is_numeric:
			self._error(f"operator '-' cannot be applied to '{ty}'", expr.span)
			return UNKNOWN
		return ty

	def _arithmetic_ok(self, op: str, ty: Type) -> bool:
		if ty.kind == TypeKind.UNKNOWN:
			return True
		if op == "+" and ty == STRING:
			return True
		if op == "%":
			return ty.kind == TypeKind.INTEGER
		return ty.is_numeric

	def _check_operands(self, expr: A.Binary, scope: _Scope, expected: Optional[Type]) -> tuple[Type, Type]:
		# Let a literal operand adopt the type of the other side.
		if isinstance(expr.left, A.NumberLit) and not isinstance(expr.right, A.NumberLit):
			right = self._check_expr(expr.right, scope, expected=expected)
			left = self._check_expr(expr.left, scope, expected=right)
		else:
			left = self._check_expr(expr.left, scope, expected=expected)
			right = self._check_expr(expr.right, scope, expected=left)
		return left, right

	def _check_binary(self, expr: A.Binary, scope: _Scope, expected: Optional[Type]) -> Type:
		op = expr.op
		if op in _LOGICAL_OPS:
			for side in (expr.left, expr.right):
				ty = self._check_expr(side, scope, expected=BOOL)
				if not compatible(BOOL, ty):
					self._error(f"operator '{op}' expects 'bool' operands, got '{ty}'", side.span)
			return BOOL
		if op in _ARITHMETIC_OPS:
			hint = expected if expected is not None and (expected.is_numeric or expected == STRING) else None
			left, right = self._check_operands(expr, scope, hint)
			if not compatible(left, right):
				self._error(f"operands of '{op}' have different types: '{left}' and '{right}'", expr.span)
				return UNKNOWN
			ty = left if left.kind != TypeKind.UNKNOWN else right
			if not self._arithmetic_ok(op, ty):
				self._error(f"operator '{op}' cannot be applied to '{ty}'", expr.span)
				return UNKNOWN
			return ty
		left, right = self._check_operands(expr, scope, None)
		if not compatible(left, right):
			self._error(f"cannot compare '{left}' with '{right}'", expr.span)
			return BOOL
		ty = left if left.kind != TypeKind.UNKNOWN else right
		if ty == VOID or (op in _ORDERING_OPS and ty == BOOL):
			self._error(f"operator '{op}' cannot be applied to '{ty}'", expr.span)
		return BOOL


def _always_returns(block: A.Block) -> bool:
	return any(_stmt_always_returns(stmt) for stmt in block.statements)


def _stmt_always_returns(stmt: A.Stmt) -> bool:
	if isinstance(stmt, A.ReturnStmt):
		return True
	if isinstance(stmt, A.BlockStmt):
		return _always_returns(stmt.block)
	if isinstance(stmt, A.IfStmt):
		if stmt.else_branch is None or not _always_returns(stmt.then_block):
			return False
		if isinstance(stmt.else_branch, A.IfStmt):
			return _stmt_always_returns(stmt.else_branch)
		return _always_returns(stmt.else_branch)
	if isinstance(stmt, A.LoopStmt):
		# An unconditional loop only falls through via its own `break`.
		return not _breaks_out(stmt.body)
	return False


def _breaks_out(block: A.Block) -> bool:
	for stmt in block.statements:
		if isinstance(stmt, A.BreakStmt):
			return True
		if isinstance(stmt, A.BlockStmt) and _breaks_out(stmt.block):
			return True
		if isinstance(stmt, A.IfStmt):
			branch: Optional[A.Block | A.IfStmt] = stmt
			while isinstance(branch, A.IfStmt):
				if _breaks_out(branch.then_block):
					return True
				branch = branch.else_branch
			if branch is not None and _breaks_out(branch):
				return True
	return False


__all__ = ["CheckedFunction", "CheckedProgram", "FORMAT_BUILTINS", "FnSignature", "ParamInfo", "TypeChecker"]
