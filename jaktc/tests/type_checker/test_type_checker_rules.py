# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from jaktc.lexer import lex
from jaktc.parser import ast as A
from jaktc.parser import parse
from jaktc.typechecker import typecheck


def _check(make_context, source: str):
	ctx = make_context(source)
	checked = typecheck(ctx, parse(ctx, lex(ctx)))
	return ctx, checked


def _messages(ctx) -> list[str]:
	return [d.message for d in ctx.errors]


def test_well_typed_program_has_no_diagnostics(make_context) -> None:
	source = """
function fib(anon n: i64) -> i64 {
    if n < 2 {
        return n
    }
    return fib(n - 1) + fib(n - 2)
}

function describe(value: i64, loud: bool) -> String {
    mut text = format("value={}", value)
    if loud {
        text += "!"
    }
    return text
}

function main() -> i32 {
    let limit: u8 = 10
    mut i: u8 = 0
    loop {
        if i >= limit { break }
        i += 1
    }
    println("{}", describe(value: fib(10), loud: true))
    return 0
}
"""
	ctx, checked = _check(make_context, source)
	assert _messages(ctx) == []
	assert [fn.name for fn in checked.functions] == ["fib", "describe", "main"]
	assert checked.function("main").signature.return_type.name == "i32"


def test_all_diagnostics_are_typechecker_phase(make_context) -> None:
	ctx, _ = _check(make_context, "function main() { let x: i64 = true }")
	assert [d.phase for d in ctx.errors] == ["typechecker"]


@pytest.mark.parametrize(
	("body", "message"),
	[
		('let x: i64 = "s"', "type mismatch: expected 'i64', but got 'String'"),
		("let x = y", "variable 'y' not found"),
		("let x: Widget = 1", "unknown type 'Widget'"),
		("let x = 1\n    let x = 2", "redefinition of variable 'x'"),
		("missing()", "function 'missing' not found"),
		("if 1 { }", "condition must be of type 'bool', not 'i64'"),
		("while \"s\" { }", "condition must be of type 'bool', not 'String'"),
		("break", "'break' outside of a loop"),
		("continue", "'continue' outside of a loop"),
		("let x: u8 = 256", "integer literal 256 out of range for 'u8'"),
		("let x: i8 = -129", "integer literal -129 out of range for 'i8'"),
		("let x = 1 + \"s\"", "operands of '+' have different types: 'i64' and 'String'"),
		("let x = 1.5 % 2.0", "operator '%' cannot be applied to 'f64'"),
		("let x = true + false", "operator '+' cannot be applied to 'bool'"),
		("let x = 1 and true", "operator 'and' expects 'bool' operands, got 'i64'"),
		("let x = not 3", "operator 'not' expects 'bool', got 'i64'"),
		("let x = -\"s\"", "operator '-' cannot be applied to 'String'"),
		("let x = 1 == \"s\"", "cannot compare 'i64' with 'String'"),
		("let x = true < false", "operator '<' cannot be applied to 'bool'"),
		('println("{} {}", 1)', "format string for 'println' has 2 placeholder(s) but 1 argument(s) were given"),
		("println(1)", "'println' expects a string literal format as its first argument"),
		("let x = println(\"\")", "cannot bind 'x' to an expression of type 'void'"),
		("return 1", "function 'main' does not return a value"),
		("let x = main", "function 'main' used as a value"),
	],
)
def test_single_error_in_main(make_context, body: str, message: str) -> None:
	ctx, _ = _check(make_context, f"function main() {{\n    {body}\n}}\n")
	assert _messages(ctx) == [message]


def test_negative_literal_at_the_lower_bound_is_accepted(make_context) -> None:
	ctx, _ = _check(make_context, "function main() { let x: i8 = -128 }")
	assert _messages(ctx) == []


def test_assignment_to_immutable_variable_has_a_note(make_context) -> None:
	ctx, _ = _check(make_context, "function main() {\n    let x = 1\n    x = 2\n}\n")
	[diag] = ctx.errors
	assert diag.message == "cannot assign to immutable variable 'x'"
	assert diag.notes == ["declare it with 'mut x' to allow assignment"]


def test_compound_assignment_on_string(make_context) -> None:
	ctx, _ = _check(make_context, 'function main() {\n    mut s = "a"\n    s += "b"\n    s -= "c"\n}\n')
	assert _messages(ctx) == ["operator '-=' cannot be applied to 'String'"]


def test_call_arity_and_labels(make_context) -> None:
	source = """
function area(width: i64, height: i64) -> i64 {
    return width * height
}

function main() {
    area(width: 1)
    area(1, height: 2)
    area(width: 1, depth: 2)
    area(width: 1, height: "tall")
}
"""
	ctx, _ = _check(make_context, source)
	assert _messages(ctx) == [
		"function 'area' expects 2 argument(s), got 1",
		"missing label 'width' for argument 1 of 'area'",
		"wrong label 'depth' for argument 2 of 'area', expected 'height'",
		"type mismatch: expected 'i64', but got 'String'",
	]


def test_missing_return_on_some_path(make_context) -> None:
	source = """
function pick(flag: bool) -> i64 {
    if flag {
        return 1
    }
}

function spin() -> i64 {
    loop {
        if false { return 1 }
    }
}

function leaky() -> i64 {
    loop {
        break
    }
}

function main() {}
"""
	ctx, _ = _check(make_context, source)
	assert _messages(ctx) == [
		"function 'pick' does not return a value on every path",
		"function 'leaky' does not return a value on every path",
	]


def test_return_without_value_in_value_function(make_context) -> None:
	ctx, _ = _check(make_context, "function f() -> i64 {\n    return\n}\nfunction main() {}\n")
	assert _messages(ctx) == ["missing return value of type 'i64'"]


def test_scoping_of_block_bindings(make_context) -> None:
	source = "function main() {\n    {\n        let inner = 1\n    }\n    let x = inner\n}\n"
	ctx, _ = _check(make_context, source)
	assert _messages(ctx) == ["variable 'inner' not found"]


def test_shadowing_in_nested_scope_is_allowed(make_context) -> None:
	source = "function main() {\n    let x = 1\n    if true {\n        let x = \"inner\"\n    }\n}\n"
	ctx, _ = _check(make_context, source)
	assert _messages(ctx) == []


@pytest.mark.parametrize(
	("source", "messages"),
	[
		("function helper() {}\n", ["no 'main' function found"]),
		("function main(x: i64) {}\n", ["function 'main' must not take parameters"]),
		("function main() -> String { return \"\" }\n", ["function 'main' must return 'void' or an integer type, not 'String'"]),
		("function main() {}\nfunction main() {}\n", ["function 'main' is already defined"]),
		("function println() {}\nfunction main() {}\n", ["cannot redefine builtin function 'println'"]),
		("function f(a: i64, a: i64) {}\nfunction main() {}\n", ["duplicate parameter 'a' in function 'f'"]),
		("function f(a: void) {}\nfunction main() {}\n", ["parameter 'a' cannot have type 'void'"]),
	],
)
def test_program_level_rules(make_context, source: str, messages: list[str]) -> None:
	ctx, _ = _check(make_context, source)
	assert _messages(ctx) == messages


def test_empty_program_reports_missing_main(make_context) -> None:
	ctx, checked = _check(make_context, "")
	assert _messages(ctx) == ["no 'main' function found"]
	assert checked.functions == []


def test_parse_failure_does_not_add_missing_main(make_context) -> None:
	ctx, _ = _check(make_context, "function main( {")
	assert [d.phase for d in ctx.errors] == ["parser"]


def test_literals_adopt_the_expected_type(make_context) -> None:
	ctx = make_context("function main() {\n    let x: u16 = 7\n    let y = x + 1\n    let z: f32 = 2.5\n}\n")
	program = parse(ctx, lex(ctx))
	checked = typecheck(ctx, program)
	assert _messages(ctx) == []
	let_x, let_y, let_z = program.functions[0].body.statements
	assert checked.type_of(let_x.value).name == "u16"
	assert isinstance(let_y.value, A.Binary)
	assert checked.type_of(let_y.value).name == "u16"
	assert checked.type_of(let_y.value.right).name == "u16"
	assert checked.type_of(let_z.value).name == "f32"


def test_render_lists_signatures(make_context) -> None:
	_, checked = _check(make_context, "function add(anon a: i64, mut b: i64) throws -> i64 { return a + b }\nfunction main() {}\n")
	rendered = checked.render()
	assert "function add(anon a: i64, mut b: i64) throws -> i64" in rendered
	assert "function main() -> void" in rendered
