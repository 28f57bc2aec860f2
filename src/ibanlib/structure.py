"""Fixed-width structural matching for BBAN contents.

A structure is an ordered list of fields, each a character class with an
exact repetition count, written in IBAN Registry notation: ``4!a`` (four
upper case letters), ``10!n`` (ten digits), ``16!c`` (sixteen upper case
alphanumerics). There are no open-ended quantifiers because BBAN fields
always have a fixed width.
"""

from __future__ import annotations

import re
import string
from dataclasses import dataclass
from typing import Optional, Tuple

DIGITS = frozenset(string.digits)
UPPER = frozenset(string.ascii_uppercase)
ALNUM = DIGITS | UPPER

_CLASSES = {
    "n": DIGITS,
    "a": UPPER,
    "c": ALNUM,
}

_CLASS_NAMES = {
    "n": "digit",
    "a": "upper case letter",
    "c": "upper case letter or digit",
}

_FIELD_RE = re.compile(r"(\d+)!([nac])")


@dataclass(frozen=True)
class Field:
    kind: str
    length: int

    def __post_init__(self) -> None:
        if self.kind not in _CLASSES:
            raise ValueError(f"Unknown field class {self.kind!r}, expected one of n, a, c")
        if not isinstance(self.length, int) or self.length <= 0:
            raise ValueError(f"Field length must be a positive integer, got {self.length!r}")

    @property
    def description(self) -> str:
        return _CLASS_NAMES[self.kind]

    @property
    def notation(self) -> str:
        return f"{self.length}!{self.kind}"

    def accepts(self, ch: str) -> bool:
        return ch in _CLASSES[self.kind]


@dataclass(frozen=True)
class Mismatch:
    position: int
    character: str
    expected: str


@dataclass(frozen=True)
class BbanStructure:
    fields: Tuple[Field, ...] = ()

    @property
    def length(self) -> int:
        return sum(f.length for f in self.fields)

    @property
    def notation(self) -> str:
        return "".join(f.notation for f in self.fields)

    def __add__(self, other: "BbanStructure") -> "BbanStructure":
        if not isinstance(other, BbanStructure):
            return NotImplemented
        return BbanStructure(self.fields + other.fields)

    def __str__(self) -> str:
        return self.notation

    def first_mismatch(self, text: str) -> Optional[Mismatch]:
        """Return the first character not allowed at its position.

        Length is not checked here; characters beyond the structure are ignored.
        """
        pos = 0
        for f in self.fields:
            for ch in text[pos:pos + f.length]:
                if not f.accepts(ch):
                    return Mismatch(position=pos, character=ch, expected=f.description)
                pos += 1
        return None

    def matches(self, text: str) -> bool:
        if not isinstance(text, str) or len(text) != self.length:
            return False
        return self.first_mismatch(text) is None


def parse_notation(notation: str) -> BbanStructure:
    """Build a structure from registry notation such as ``4!a2!n``."""
    if not isinstance(notation, str) or not notation:
        raise ValueError(f"Empty or non-string field notation: {notation!r}")
    fields = []
    pos = 0
    for m in _FIELD_RE.finditer(notation):
        if m.start() != pos:
            break
        fields.append(Field(kind=m.group(2), length=int(m.group(1))))
        pos = m.end()
    if pos != len(notation):
        raise ValueError(f"Malformed field notation {notation!r} at offset {pos}")
    return BbanStructure(tuple(fields))
