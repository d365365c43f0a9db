# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Printer: token trees back to Rust source text.

Output is correct but not pretty: tokens are space separated, `;` and
braces break lines, and nothing is indented. Run rustfmt over the result
for a readable file.
"""
import io
from typing import Optional, Sequence, TextIO

from .errors import InvariantViolation
from .literals import unquote_str
from .syntax import AttrStyle, CompilationUnit
from .tokens import Delimiter, Group, Ident, Literal, Punct, TokenTree, is_ident, is_punct

DELIMITERS = {
    Delimiter.PARENTHESIS: ("(", ")"),
    Delimiter.BRACE: ("{\n", "}\n"),
    Delimiter.BRACKET: ("[", "]"),
    Delimiter.NONE: ("", ""),
}


def as_doc_comment(first: TokenTree, second: TokenTree) -> Optional[str]:
    """
    Value of a `#[doc = "..."]` attribute spread over `first` and `second`.

    Only a bracket group of exactly `doc`, `=`, string literal matches.
    """
    if not is_punct(first, "#"):
        return None
    if not isinstance(second, Group) or second.delimiter is not Delimiter.BRACKET:
        return None
    if len(second.stream) != 3:
        return None
    ident, punct, lit = second.stream
    if is_ident(ident, "doc") and is_punct(punct, "=") and isinstance(lit, Literal):
        return unquote_str(lit.text)
    return None


def doc_lines(marker: str, value: str) -> str:
    """One comment line per line of `value` (block doc comments span lines)."""
    return "".join(f"{marker}{line}\n" for line in value.split("\n"))


def write_tokens_normalized(out: TextIO, tokens: Sequence[TokenTree]) -> None:
    """Write tokens space separated, turning doc attributes into `///` lines."""
    joint = False
    first = True
    i = 0
    while i < len(tokens):
        tt = tokens[i]
        i += 1
        if not first and not joint:
            out.write(" ")
        first = False
        joint = False

        if i < len(tokens):
            comment = as_doc_comment(tt, tokens[i])
            if comment is not None:
                i += 1
                out.write(doc_lines("///", comment))
                continue

        if isinstance(tt, Group):
            start, end = DELIMITERS[tt.delimiter]
            if not tt.stream:
                out.write(f"{start} {end}")
            else:
                out.write(f"{start} ")
                write_tokens_normalized(out, tt.stream)
                out.write(f" {end}")
        elif isinstance(tt, Ident):
            out.write(tt.name)
        elif isinstance(tt, Punct):
            out.write(tt.char)
            if tt.char == ";":
                out.write("\n")
            joint = tt.joint
        elif isinstance(tt, Literal):
            out.write(tt.text)
        else:
            raise InvariantViolation(f"Not a token tree: {tt!r}")


def render_tokens(tokens: Sequence[TokenTree]) -> str:
    buf = io.StringIO()
    write_tokens_normalized(buf, tokens)
    return buf.getvalue()


class FilePrinter:
    """Renders a whole compilation unit."""

    def __init__(self, unit: CompilationUnit):
        self.unit = unit

    def write_to(self, out: TextIO) -> None:
        unit = self.unit
        if unit.shebang is not None:
            out.write(f"{unit.shebang}\n")

        for attr in unit.attrs:
            if attr.style is not AttrStyle.INNER:
                raise InvariantViolation("File can only have inner attributes at top level")

        # doc attributes first, then the rest
        for attr in unit.attrs:
            if attr.is_doc:
                out.write(doc_lines("//!", attr.value))
        for attr in unit.attrs:
            if not attr.is_doc:
                out.write(f"#![{attr.path}{render_tokens(attr.tokens)}]\n")

        for item in unit.items:
            write_tokens_normalized(out, item.to_tokens())
            out.write("\n\n")

    def __str__(self) -> str:
        buf = io.StringIO()
        self.write_to(buf)
        return buf.getvalue()


def render_unit(unit: CompilationUnit) -> str:
    return str(FilePrinter(unit))
