"""
Generate phase: `CheckedProgram` -> C++ source text.

Only ever invoked after the driver gate, i.e. on a program with no
diagnostics; it does not record errors of its own.
"""

from __future__ import annotations

from jaktc.compiler import CompilationContext
from jaktc.typechecker.checker import CheckedProgram

from .cpp_codegen import CppModuleBuilder, cpp_string_literal, mangle


def generate(context: CompilationContext, program: CheckedProgram, debug_info: bool = False) -> str:
	file_id = context.current_file
	context.dbg_println(f"generating C++ for {len(program.functions)} function(s)")
	builder = CppModuleBuilder(
		program=program,
		source_path=context.get_file_path(file_id),
		source_text=context.get_file_contents(file_id),
		debug_info=debug_info,
	)
	return builder.build()


__all__ = ["CppModuleBuilder", "cpp_string_literal", "generate", "mangle"]
