# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

import logging
import os
import re
import time
from typing import Dict, List, Tuple

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput

from .errors import SourceParseError
from .literals import quote_str
from .tokens import (
    PUNCT_CHARS,
    Delimiter,
    Group,
    Ident,
    Literal,
    Punct,
    Spacing,
    TokenTree,
)

logger = logging.getLogger("lexer")

GRAMMAR_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "rust_tokens.lark")

_LITERAL_TERMINALS = {"STRING", "RAW_STRING", "CHAR", "NUMBER"}

_RAW_OPEN = re.compile(r'[bc]?r(#*)"')
_CHAR = re.compile(r"""b?'(?:[^'\\\n\r\t]|\\(?:[nrt\\0'"]|x[0-9a-fA-F]{2}|u\{[0-9a-fA-F_]{1,6}\}))'""")


def _position(code: str, pos: int) -> Tuple[int, int]:
    line = code.count("\n", 0, pos) + 1
    return line, pos - code.rfind("\n", 0, pos)


def _blank(text: str) -> str:
    return "".join("\n" if ch == "\n" else " " for ch in text)


def _block_comment_end(code: str, start: int) -> int:
    """End offset of the (possibly nested) block comment at `start`, or -1."""
    depth = 0
    i = start
    while i < len(code):
        if code.startswith("/*", i):
            depth += 1
            i += 2
        elif code.startswith("*/", i):
            depth -= 1
            i += 2
            if depth == 0:
                return i
        else:
            i += 1
    return -1


def _is_block_doc(comment: str) -> bool:
    if comment.startswith("/*!"):
        return True
    return comment.startswith("/**") and comment[3:4] not in ("*", "/")


def mask_source(code: str, source_file: str = "<unknown>") -> Tuple[str, Dict[int, str]]:
    """
    Blank out what the grammar cannot match by itself.

    Block comments nest and raw strings close on a quote followed by as many
    `#` as they opened with. Plain block comments become whitespace. Block
    doc comments and raw strings are replaced by a same-length placeholder
    the grammar does match; their original text is returned keyed by start
    offset. Offsets and line breaks are unchanged.

    Raises:
        SourceParseError: on an unterminated block comment or raw string.
    """
    out = []
    originals: Dict[int, str] = {}
    i = last = 0
    n = len(code)
    while i < n:
        if code.startswith("//", i):
            end = code.find("\n", i)
            i = n if end == -1 else end
        elif code.startswith("/*", i):
            end = _block_comment_end(code, i)
            if end == -1:
                line, column = _position(code, i)
                raise SourceParseError("Unterminated block comment", path=source_file, line=line, column=column)
            comment = code[i:end]
            out.append(code[last:i])
            if _is_block_doc(comment):
                originals[i] = comment
                out.append(comment[:3] + _blank(comment[3:-2]) + "*/")
            else:
                out.append(_blank(comment))
            i = last = end
        elif code[i] == '"':
            i += 1
            while i < n and code[i] != '"':
                i += 2 if code[i] == "\\" else 1
            i += 1
        elif code[i] == "'":
            char = _CHAR.match(code, i)
            i = char.end() if char else i + 1
        else:
            raw = _RAW_OPEN.match(code, i)
            if raw is None or (i > 0 and (code[i - 1].isalnum() or code[i - 1] == "_")):
                i += 1
                continue
            close = code.find('"' + raw.group(1), raw.end())
            if close == -1:
                line, column = _position(code, i)
                raise SourceParseError("Unterminated raw string", path=source_file, line=line, column=column)
            end = close + 1 + len(raw.group(1))
            quote = raw.start(1)
            originals[i] = code[i:end]
            out.append(code[last:i])
            out.append(code[i:quote] + '"' + _blank(code[quote + 1:end - 1]) + '"')
            i = last = end
    out.append(code[last:])
    return "".join(out), originals


def doc_attribute_tokens(text: str, inner: bool = False) -> List[TokenTree]:
    """Tokens of `#[doc = "text"]` (or `#![...]` when inner)."""
    out: List[TokenTree] = [Punct("#")]
    if inner:
        out.append(Punct("!"))
    out.append(Group(Delimiter.BRACKET, (Ident("doc"), Punct("="), Literal(quote_str(text)))))
    return out


class TokenTreeBuilder(Transformer):
    """Turns the lark parse tree into token trees."""

    def __init__(self, source: str, originals: Dict[int, str] = None):
        super().__init__()
        self.source = source
        self.originals = originals or {}

    def start(self, children):
        return self._leaves(children)

    def paren(self, children):
        return Group(Delimiter.PARENTHESIS, tuple(self._leaves(children)))

    def bracket(self, children):
        return Group(Delimiter.BRACKET, tuple(self._leaves(children)))

    def brace(self, children):
        return Group(Delimiter.BRACE, tuple(self._leaves(children)))

    def _leaves(self, children) -> List[TokenTree]:
        out: List[TokenTree] = []
        for child in children:
            if isinstance(child, Token):
                out.extend(self._convert(child))
            else:
                out.append(child)
        return out

    def _convert(self, token: Token) -> List[TokenTree]:
        kind = token.type
        text = self.originals.get(token.start_pos, str(token))
        if kind == "IDENT":
            return [Ident(text)]
        if kind == "PUNCT":
            nxt = self.source[token.end_pos:token.end_pos + 1]
            spacing = Spacing.JOINT if nxt and nxt in PUNCT_CHARS else Spacing.ALONE
            return [Punct(text, spacing)]
        if kind == "LIFETIME":
            return [Punct("'", Spacing.JOINT), Ident(text[1:])]
        if kind in _LITERAL_TERMINALS:
            return [Literal(text)]
        if kind == "OUTER_DOC":
            return doc_attribute_tokens(text[3:])
        if kind == "INNER_DOC":
            return doc_attribute_tokens(text[3:], inner=True)
        if kind == "BLOCK_DOC":
            return doc_attribute_tokens(text[3:-2], inner=text[2] == "!")
        raise ValueError(f"Unexpected token kind: {kind}")


class TokenParser:
    _parsers = {}

    def __init__(self, grammar_path: str = GRAMMAR_PATH):
        self.grammar_path = grammar_path
        if grammar_path not in self._parsers:
            with open(grammar_path, "r", encoding="utf-8") as f:
                grammar = f.read()
            self._parsers[grammar_path] = Lark(grammar, start="start", parser="lalr")
        self.parser = self._parsers[grammar_path]

    def tokenize(self, code: str, source_file: str = "<unknown>") -> Tuple[TokenTree, ...]:
        """
        Tokenize Rust source into token trees.

        Raises:
            SourceParseError: on an unknown character, an unbalanced delimiter
                or an unterminated block comment or raw string.
        """
        start_time = time.time()
        masked, originals = mask_source(code, source_file)
        try:
            tree = self.parser.parse(masked)
        except UnexpectedInput as e:
            line = getattr(e, "line", -1)
            column = getattr(e, "column", -1)
            raise SourceParseError(
                f"Syntax Error at line {line}, col {column}: {e}",
                path=source_file,
                line=line,
                column=column,
            ) from e

        tokens = tuple(TokenTreeBuilder(masked, originals).transform(tree))
        dur = (time.time() - start_time) * 1000
        logger.debug(f"Tokenized {source_file}: {len(code)} bytes in {dur:.2f}ms")
        return tokens


def tokenize(code: str, source_file: str = "<unknown>") -> Tuple[TokenTree, ...]:
    return TokenParser().tokenize(code, source_file)
