# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from jaktc.driver import main


@pytest.mark.parametrize("failing", ["lex", "parse", "typecheck"])
def test_error_in_any_phase_blocks_codegen(failing: str, write_source, recording_phases, capsys) -> None:
	src = write_source()
	rec = recording_phases(failing=[failing])
	assert main([str(src)], phases=rec.phases()) == 1
	# Lex, parse and typecheck all run; only generate is gated.
	assert rec.calls == ["lex", "parse", "typecheck"]
	captured = capsys.readouterr()
	assert captured.out == ""
	assert f"Error: {failing} failed" in captured.err


def test_diagnostics_from_several_phases_print_in_detection_order(write_source, recording_phases, capsys) -> None:
	src = write_source()
	rec = recording_phases(failing=["lex", "typecheck"])
	assert main([str(src)], phases=rec.phases()) == 1
	err = capsys.readouterr().err
	assert err.index("lex failed") < err.index("typecheck failed")


def test_emit_mode_writes_generated_text_verbatim(tmp_path: Path, write_source, recording_phases, monkeypatch, capsys) -> None:
	monkeypatch.chdir(tmp_path)
	src = write_source()
	rec = recording_phases()
	assert main([str(src)], phases=rec.phases()) == 0
	assert rec.calls == ["lex", "parse", "typecheck", "generate"]
	assert capsys.readouterr().out == rec.GENERATED
	# Emit mode never touches the output directory.
	assert not (tmp_path / "build").exists()
	assert sorted(p.name for p in tmp_path.iterdir()) == ["main.jakt"]


def test_check_only_stops_before_codegen(write_source, recording_phases, capsys) -> None:
	src = write_source()
	rec = recording_phases()
	assert main(["-c", str(src)], phases=rec.phases()) == 0
	assert "generate" not in rec.calls
	assert capsys.readouterr().out == ""


def test_check_only_still_reports_errors(write_source, recording_phases, capsys) -> None:
	src = write_source()
	rec = recording_phases(failing=["typecheck"])
	assert main(["--check-only", str(src)], phases=rec.phases()) == 1
	assert "typecheck failed" in capsys.readouterr().err


def test_debug_info_flag_reaches_generate(write_source, recording_phases) -> None:
	src = write_source()
	rec = recording_phases()
	assert main(["-d", str(src)], phases=rec.phases()) == 0
	assert rec.debug_info == [True]


@pytest.mark.parametrize(
	"flags",
	[["-l"], ["-p"], ["-t"], ["--debug-print"], ["-l", "-p", "-t", "--debug-print"]],
)
def test_debug_flags_do_not_change_results(flags: list[str], write_source, recording_phases, capsys) -> None:
	src = write_source()
	plain = recording_phases()
	assert main([str(src)], phases=plain.phases()) == 0
	plain_out = capsys.readouterr().out

	debug = recording_phases()
	assert main([*flags, str(src)], phases=debug.phases()) == 0
	captured = capsys.readouterr()
	assert captured.out == plain_out
	assert captured.err != ""
	assert debug.calls.count("generate") == 1


def test_debug_flags_do_not_rescue_a_failing_compile(write_source, recording_phases) -> None:
	src = write_source()
	rec = recording_phases(failing=["parse"])
	assert main(["-l", "-p", "-t", "--debug-print", str(src)], phases=rec.phases()) == 1


def test_dumps_go_to_stderr(write_source, recording_phases, capsys) -> None:
	src = write_source()
	rec = recording_phases()
	assert main(["-l", "-p", "-t", str(src)], phases=rec.phases()) == 0
	err = capsys.readouterr().err
	assert "--- tokens ---" in err
	assert "token: 'tok'" in err
	assert "--- parsed program ---" in err
	assert "--- checked program ---" in err


def test_json_diagnostics(write_source, recording_phases, capsys) -> None:
	src = write_source()
	rec = recording_phases(failing=["parse"])
	assert main(["--json", str(src)], phases=rec.phases()) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["exit_code"] == 1
	[diag] = payload["diagnostics"]
	assert diag["phase"] == "parse"
	assert diag["message"] == "parse failed"
	assert diag["file"] == str(src)
	assert (diag["line"], diag["column"]) == (1, 1)


def test_real_pipeline_emits_cpp(write_source, capsys) -> None:
	src = write_source()
	assert main([str(src)]) == 0
	out = capsys.readouterr().out
	assert "#include <lib.h>" in out
	assert 'Jakt::println("Hello, {}!", String("world"));' in out
	assert "int main()" in out


def test_real_pipeline_reports_type_error(write_source, capsys) -> None:
	src = write_source('function main() {\n    let x: i64 = "no"\n}\n')
	assert main([str(src)]) == 1
	captured = capsys.readouterr()
	assert captured.out == ""
	assert "Error: type mismatch: expected 'i64', but got 'String'" in captured.err
	assert f"----- {src}:2:18" in captured.err


def test_real_pipeline_reports_bad_string_escape(write_source, capsys) -> None:
	src = write_source('function main() {\n    println("\\x")\n}\n')
	assert main([str(src)]) == 1
	captured = capsys.readouterr()
	assert captured.out == ""
	assert "Error: invalid escape sequence '\\x'" in captured.err
	assert f"----- {src}:2:13" in captured.err
