"""
Typecheck phase: `Program` -> `CheckedProgram`.
"""

from __future__ import annotations

from jaktc.compiler import CompilationContext
from jaktc.parser.ast import Program

from .checker import CheckedFunction, CheckedProgram, FnSignature, ParamInfo, TypeChecker
from .types import BUILTIN_TYPES, Type, TypeKind


def typecheck(context: CompilationContext, program: Program) -> CheckedProgram:
	context.dbg_println(f"typechecking {len(program.functions)} function(s)")
	return TypeChecker(context).check(program)


__all__ = [
	"BUILTIN_TYPES",
	"CheckedFunction",
	"CheckedProgram",
	"FnSignature",
	"ParamInfo",
	"Type",
	"TypeChecker",
	"TypeKind",
	"typecheck",
]
