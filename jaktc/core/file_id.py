# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class FileId:
	"""
	Stable identity for a source file registered with a CompilationContext.

	`index` is the registration order within the run (0 for the first file).
	"""

	index: int

	def __str__(self) -> str:
		return f"file#{self.index}"


__all__ = ["FileId"]
