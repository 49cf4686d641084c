# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by diagnostics.

A Span only records character offsets into a registered file; line/column
are derived on demand from the file contents so the lexer and parser never
need to agree on a line-counting convention.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .file_id import FileId


@dataclass(frozen=True)
class Span:
	"""Half-open `[start, end)` character range in a registered file."""

	file_id: Optional[FileId] = None
	start: int = 0
	end: int = 0

	@classmethod
	def from_token(cls, file_id: Optional[FileId], tok: Any) -> "Span":
		"""
		Construct a Span from a lark Token (or anything with start_pos/end_pos).

		Tokens synthesized by lark (e.g. `$END`) may lack positions; those map
		to an empty span at offset 0.
		"""
		start = getattr(tok, "start_pos", None)
		end = getattr(tok, "end_pos", None)
		if start is None:
			return cls(file_id=file_id)
		return cls(file_id=file_id, start=start, end=end if end is not None else start)

	@classmethod
	def from_meta(cls, file_id: Optional[FileId], meta: Any) -> "Span":
		"""Construct a Span from a lark Tree's `meta` (propagate_positions=True)."""
		if meta is None or getattr(meta, "empty", True):
			return cls(file_id=file_id)
		return cls(file_id=file_id, start=meta.start_pos, end=meta.end_pos)


def line_and_column(contents: str, offset: int) -> tuple[int, int]:
	"""1-based (line, column) for a character offset into `contents`."""
	offset = max(0, min(offset, len(contents)))
	line = contents.count("\n", 0, offset) + 1
	line_start = contents.rfind("\n", 0, offset) + 1
	return line, offset - line_start + 1


__all__ = ["Span", "line_and_column"]
