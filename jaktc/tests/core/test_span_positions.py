# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from types import SimpleNamespace

from jaktc.core.file_id import FileId
from jaktc.core.span import Span, line_and_column


def test_line_and_column_are_one_based() -> None:
	text = "ab\ncd\n\nef"
	assert line_and_column(text, 0) == (1, 1)
	assert line_and_column(text, 1) == (1, 2)
	assert line_and_column(text, 3) == (2, 1)
	assert line_and_column(text, 6) == (3, 1)
	assert line_and_column(text, 8) == (4, 2)


def test_line_and_column_clamps_out_of_range_offsets() -> None:
	assert line_and_column("abc", 100) == (1, 4)
	assert line_and_column("abc", -5) == (1, 1)


def test_span_from_token_without_position() -> None:
	fid = FileId(0)
	assert Span.from_token(fid, SimpleNamespace(start_pos=None, end_pos=None)) == Span(file_id=fid)
	assert Span.from_token(fid, SimpleNamespace(start_pos=4, end_pos=9)) == Span(file_id=fid, start=4, end=9)


def test_span_from_empty_meta() -> None:
	assert Span.from_meta(FileId(1), SimpleNamespace(empty=True)) == Span(file_id=FileId(1))


def test_file_id_str() -> None:
	assert str(FileId(2)) == "file#2"
