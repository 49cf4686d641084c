# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Builtin type universe for the Jakt subset.

Types are interned `Type` records keyed by their Jakt spelling; each carries
the C++ spelling used by codegen (the runtime header aliases the integer
names, so most spellings coincide).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Optional


class TypeKind(Enum):
	"""Kinds of types understood by the checker."""

	INTEGER = auto()
	FLOAT = auto()
	BOOL = auto()
	STRING = auto()
	VOID = auto()
	UNKNOWN = auto()


@dataclass(frozen=True)
class Type:
	name: str
	kind: TypeKind
	cpp: str

	@property
	def is_numeric(self) -> bool:
		return self.kind in (TypeKind.INTEGER, TypeKind.FLOAT)

	def __str__(self) -> str:
		return self.name


def _scalar(name: str, kind: TypeKind, cpp: Optional[str] = None) -> Type:
	return Type(name=name, kind=kind, cpp=cpp or name)


I64 = _scalar("i64", TypeKind.INTEGER)
F64 = _scalar("f64", TypeKind.FLOAT)
BOOL = _scalar("bool", TypeKind.BOOL)
STRING = _scalar("String", TypeKind.STRING)
VOID = _scalar("void", TypeKind.VOID)
# Result of an ill-typed expression; compatible with everything so one
# mistake does not cascade into a pile of follow-up diagnostics.
UNKNOWN = _scalar("<unknown>", TypeKind.UNKNOWN, cpp="auto")

BUILTIN_TYPES: Dict[str, Type] = {
	t.name: t
	for t in (
		_scalar("i8", TypeKind.INTEGER),
		_scalar("i16", TypeKind.INTEGER),
		_scalar("i32", TypeKind.INTEGER),
		I64,
		_scalar("u8", TypeKind.INTEGER),
		_scalar("u16", TypeKind.INTEGER),
		_scalar("u32", TypeKind.INTEGER),
		_scalar("u64", TypeKind.INTEGER),
		_scalar("usize", TypeKind.INTEGER),
		_scalar("f32", TypeKind.FLOAT),
		F64,
		BOOL,
		STRING,
		VOID,
	)
}


def lookup_type(name: str) -> Optional[Type]:
	return BUILTIN_TYPES.get(name)


def compatible(expected: Type, actual: Type) -> bool:
	if TypeKind.UNKNOWN in (expected.kind, actual.kind):
		return True
	return expected == actual


__all__ = ["BOOL", "BUILTIN_TYPES", "F64", "I64", "STRING", "Type", "TypeKind", "UNKNOWN", "VOID", "compatible", "lookup_type"]
