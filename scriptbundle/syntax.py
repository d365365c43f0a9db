# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Compilation units: a Rust file reduced to what bundling needs.

A unit is an optional shebang, the file-level (inner) attributes and the
top-level items. Items stay as opaque token streams; only their leading
keyword and name are ever inspected.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from .lexer import tokenize
from .literals import unquote_str
from .tokens import (
    Delimiter,
    Group,
    Ident,
    Literal,
    Punct,
    Spacing,
    TokenTree,
    flatten,
    is_group,
    is_ident,
    is_punct,
    path_tokens,
)


class AttrStyle(Enum):
    OUTER = "outer"
    INNER = "inner"


@dataclass
class Attribute:
    path: str
    tokens: Tuple[TokenTree, ...] = ()
    style: AttrStyle = AttrStyle.OUTER

    @property
    def value(self) -> Optional[str]:
        """String value of a `name = "..."` attribute, else None."""
        if len(self.tokens) != 2:
            return None
        eq, lit = self.tokens
        if not is_punct(eq, "=") or not isinstance(lit, Literal):
            return None
        return unquote_str(lit.text)

    @property
    def is_doc(self) -> bool:
        return self.path == "doc" and self.value is not None

    def to_tokens(self) -> Tuple[TokenTree, ...]:
        head: List[TokenTree] = []
        if self.style is AttrStyle.INNER:
            head.append(Punct("#", Spacing.JOINT))
            head.append(Punct("!"))
        else:
            head.append(Punct("#"))
        body = path_tokens(self.path) + tuple(self.tokens)
        return tuple(head) + (Group(Delimiter.BRACKET, body),)


@dataclass
class Item:
    tokens: Tuple[TokenTree, ...]

    @property
    def keyword(self) -> Optional[str]:
        return describe_item(self.tokens)[0]

    @property
    def name(self) -> Optional[str]:
        return describe_item(self.tokens)[1]

    def to_tokens(self) -> Tuple[TokenTree, ...]:
        return self.tokens


@dataclass
class NamedModule:
    """A whole crate nested as `mod <name> { ... }`."""
    name: str
    items: List["Member"] = field(default_factory=list)

    @property
    def keyword(self) -> str:
        return "mod"

    def to_tokens(self) -> Tuple[TokenTree, ...]:
        body = flatten(item.to_tokens() for item in self.items)
        return (Ident("mod"), Ident(self.name), Group(Delimiter.BRACE, body))


Member = Union[Item, NamedModule]


@dataclass
class CompilationUnit:
    shebang: Optional[str] = None
    attrs: List[Attribute] = field(default_factory=list)
    items: List[Member] = field(default_factory=list)


def split_shebang(text: str) -> Tuple[Optional[str], str]:
    """Strip a leading `#!` line that is not an inner attribute."""
    if not text.startswith("#!") or text[2:].lstrip().startswith("["):
        return None, text
    end = text.find("\n")
    if end == -1:
        return text, ""
    # keep the newline so line numbers stay right
    return text[:end].rstrip("\r"), text[end:]


def parse_attribute(group: Group, style: AttrStyle) -> Attribute:
    stream = group.stream
    i = 0
    segments: List[str] = []
    if stream and is_ident(stream[0]):
        segments.append(stream[0].name)
        i = 1
        while (
            i + 2 < len(stream)
            and is_punct(stream[i], ":")
            and is_punct(stream[i + 1], ":")
            and is_ident(stream[i + 2])
        ):
            segments.append(stream[i + 2].name)
            i += 3
    return Attribute("::".join(segments), tuple(stream[i:]), style)


def split_inner_attrs(tokens: Sequence[TokenTree]) -> Tuple[List[Attribute], Tuple[TokenTree, ...]]:
    attrs = []
    i = 0
    while (
        i + 2 < len(tokens)
        and is_punct(tokens[i], "#")
        and is_punct(tokens[i + 1], "!")
        and is_group(tokens[i + 2], Delimiter.BRACKET)
    ):
        attrs.append(parse_attribute(tokens[i + 2], AttrStyle.INNER))
        i += 3
    return attrs, tuple(tokens[i:])


def _skip_outer_attrs(tokens: Sequence[TokenTree], i: int) -> int:
    while i + 1 < len(tokens) and is_punct(tokens[i], "#") and is_group(tokens[i + 1], Delimiter.BRACKET):
        i += 2
    return i


def _skip_visibility(tokens: Sequence[TokenTree], i: int) -> int:
    if i < len(tokens) and is_ident(tokens[i], "pub"):
        i += 1
        if i < len(tokens) and is_group(tokens[i], Delimiter.PARENTHESIS):
            i += 1
    return i


def _ident_at(tokens: Sequence[TokenTree], i: int) -> Optional[str]:
    if i < len(tokens) and isinstance(tokens[i], Ident):
        return tokens[i].name
    return None


_QUALIFIERS = {"unsafe", "async", "const", "default", "extern", "auto"}


def describe_item(tokens: Sequence[TokenTree]) -> Tuple[Optional[str], Optional[str]]:
    """
    Keyword and name of an item: `pub fn main() {}` -> ("fn", "main").

    Macro invocations report the macro path as keyword and no name, except
    `macro_rules! name`.
    """
    i = _skip_visibility(tokens, _skip_outer_attrs(tokens, 0))
    while True:
        word = _ident_at(tokens, i)
        nxt = _ident_at(tokens, i + 1)
        if word == "extern" and nxt == "crate":
            return "extern crate", _ident_at(tokens, i + 2)
        if word == "extern" and i + 2 < len(tokens) and isinstance(tokens[i + 1], Literal):
            if _ident_at(tokens, i + 2) is None:
                return "extern", None
            i += 2
            continue
        if word == "const" and nxt not in ("fn", "unsafe", "async", "extern"):
            break
        if word in _QUALIFIERS and nxt is not None:
            i += 1
            continue
        break

    word = _ident_at(tokens, i)
    if word is None:
        return None, None
    if i + 1 < len(tokens) and is_punct(tokens[i + 1], "!"):
        if word == "macro_rules":
            return word, _ident_at(tokens, i + 2)
        return word, None
    if word == "impl":
        return word, None
    name = _ident_at(tokens, i + 1)
    if name == "mut":
        name = _ident_at(tokens, i + 2)
    if name is not None and name.startswith("r#"):
        name = name[2:]
    return word, name


def _ends_at_brace(tokens: Sequence[TokenTree]) -> bool:
    i = _skip_visibility(tokens, _skip_outer_attrs(tokens, 0))
    word = _ident_at(tokens, i)
    if word in ("use", "type", "static", "let"):
        return False
    if word == "const":
        return _ident_at(tokens, i + 1) in ("fn", "unsafe", "async", "extern")
    if word == "extern":
        return not is_ident(tokens[i + 1] if i + 1 < len(tokens) else None, "crate")
    return True


def split_items(tokens: Sequence[TokenTree]) -> List[Item]:
    """
    Cut a module body into items.

    An item ends at a top-level `;` or at a top-level brace group. Items
    whose body is an expression (`const`, `static`, ...) end only at `;`.
    """
    items: List[Item] = []
    current: List[TokenTree] = []

    def flush():
        if not current:
            return
        if len(current) == 1 and is_punct(current[0], ";") and items:
            items[-1] = Item(items[-1].tokens + (current[0],))
        else:
            items.append(Item(tuple(current)))
        current.clear()

    for tt in tokens:
        current.append(tt)
        if is_punct(tt, ";"):
            flush()
        elif is_group(tt, Delimiter.BRACE) and _ends_at_brace(current):
            flush()
    flush()
    return items


def parse_body(tokens: Sequence[TokenTree]) -> Tuple[List[Attribute], List[Item]]:
    attrs, rest = split_inner_attrs(tokens)
    return attrs, split_items(rest)


def parse_file(text: str, path: str = "<unknown>") -> CompilationUnit:
    shebang, code = split_shebang(text)
    attrs, items = parse_body(tokenize(code, path))
    return CompilationUnit(shebang=shebang, attrs=attrs, items=list(items))


@dataclass
class ModuleDecl:
    """`[#[attrs]] [vis] mod name;` or `mod name { ... }`."""
    name: str
    head: Tuple[TokenTree, ...]
    body: Optional[Group]
    path_attr: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.body is None

    def with_body(self, body: Sequence[TokenTree]) -> Item:
        return Item(self.head + (Group(Delimiter.BRACE, tuple(body)),))


def module_declaration(item: Item) -> Optional[ModuleDecl]:
    tokens = item.tokens
    path_attr = None
    i = 0
    while i + 1 < len(tokens) and is_punct(tokens[i], "#") and is_group(tokens[i + 1], Delimiter.BRACKET):
        attr = parse_attribute(tokens[i + 1], AttrStyle.OUTER)
        if attr.path == "path" and attr.value is not None:
            path_attr = attr.value
        i += 2
    i = _skip_visibility(tokens, i)
    if not is_ident(tokens[i] if i < len(tokens) else None, "mod"):
        return None
    name = _ident_at(tokens, i + 1)
    if name is None:
        return None
    head = tuple(tokens[:i + 2])
    rest = tokens[i + 2:]
    if name.startswith("r#"):
        name = name[2:]
    if len(rest) == 1 and is_punct(rest[0], ";"):
        return ModuleDecl(name, head, None, path_attr)
    if len(rest) == 1 and is_group(rest[0], Delimiter.BRACE):
        return ModuleDecl(name, head, rest[0], path_attr)
    return None
