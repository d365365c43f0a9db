# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Token trees: the structural form of Rust source between lexing and printing.

A token stream is a tuple of token trees. Each tree is either a leaf
(Ident, Punct, Literal) or a Group wrapping a nested stream.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple, Union


class Delimiter(Enum):
    PARENTHESIS = "parenthesis"
    BRACE = "brace"
    BRACKET = "bracket"
    NONE = "none"


class Spacing(Enum):
    ALONE = "alone"
    JOINT = "joint"


@dataclass(frozen=True)
class Ident:
    name: str


@dataclass(frozen=True)
class Punct:
    char: str
    spacing: Spacing = Spacing.ALONE

    @property
    def joint(self) -> bool:
        return self.spacing is Spacing.JOINT


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Group:
    delimiter: Delimiter
    stream: Tuple["TokenTree", ...] = ()


TokenTree = Union[Ident, Punct, Literal, Group]

# Characters that can start a multi-character operator in Rust.
PUNCT_CHARS = "~!@#$%^&*-=+|;:,<.>/?'"


def is_punct(tt: Optional[TokenTree], char: str) -> bool:
    return isinstance(tt, Punct) and tt.char == char


def is_ident(tt: Optional[TokenTree], name: Optional[str] = None) -> bool:
    if not isinstance(tt, Ident):
        return False
    return name is None or tt.name == name


def is_group(tt: Optional[TokenTree], delimiter: Optional[Delimiter] = None) -> bool:
    if not isinstance(tt, Group):
        return False
    return delimiter is None or tt.delimiter is delimiter


def path_tokens(path: str) -> Tuple[TokenTree, ...]:
    """`a::b` -> Ident(a) Punct(':', joint) Punct(':') Ident(b)."""
    out = []
    for i, segment in enumerate(path.split("::")):
        if i:
            out.append(Punct(":", Spacing.JOINT))
            out.append(Punct(":"))
        out.append(Ident(segment))
    return tuple(out)


def flatten(streams: Iterable[Iterable[TokenTree]]) -> Tuple[TokenTree, ...]:
    return tuple(tt for stream in streams for tt in stream)
