# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Module inliner: replaces every `mod foo;` with `mod foo { <foo.rs> }`.

File lookup follows rustc: children of a crate root or a `mod.rs` file
live next to it, children of `a.rs` live in `a/`. `#[path = "..."]` is
resolved against the declaring file's directory.

Errors in included files do not stop the walk. They are collected and
returned next to the (partially inlined) unit; the declaration that failed
is left as it was.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Sequence, Tuple

from .errors import BundleIOError, SourceParseError
from .syntax import CompilationUnit, Item, ModuleDecl, module_declaration, parse_body, parse_file
from .tokens import flatten

logger = logging.getLogger("inliner")


class ErrorKind(Enum):
    IO = "io"
    PARSE = "parse"
    CYCLE = "cycle"


@dataclass
class InlineError:
    path: Path
    src_path: Path
    module_name: str
    kind: ErrorKind
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value} error: {self.detail}" if self.detail else f"{self.kind.value} error"


class ModuleInliner:

    def parse_and_inline_modules(self, path) -> Tuple[CompilationUnit, List[InlineError]]:
        """
        Load the crate root at `path` and inline all of its modules.

        Raises:
            BundleIOError: the root file cannot be read.
            SourceParseError: the root file cannot be tokenized.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise BundleIOError(f"Failed to read {path}", path=str(path)) from e

        unit = parse_file(text, str(path))
        errors: List[InlineError] = []
        stack = [path.resolve()]
        unit.items = self._inline_items(unit.items, path, path.parent, path.parent, errors, stack)
        if errors:
            logger.warning(f"{len(errors)} module(s) could not be inlined under {path}")
        return unit, errors

    def _inline_items(self, items, current_file: Path, mod_dir: Path, path_base: Path,
                      errors: List[InlineError], stack: List[Path]) -> list:
        result = []
        for item in items:
            decl = module_declaration(item) if isinstance(item, Item) else None
            if decl is None:
                result.append(item)
            elif decl.is_external:
                result.append(self._load_external(decl, item, current_file, mod_dir, path_base, errors, stack))
            else:
                attrs, body_items = parse_body(decl.body.stream)
                if decl.path_attr:
                    child_dir = path_base / decl.path_attr
                else:
                    child_dir = mod_dir / decl.name
                inner = self._inline_items(body_items, current_file, child_dir, child_dir, errors, stack)
                result.append(decl.with_body(self._body_tokens(attrs, inner)))
        return result

    def _load_external(self, decl: ModuleDecl, item: Item, current_file: Path, mod_dir: Path,
                       path_base: Path, errors: List[InlineError], stack: List[Path]) -> Item:
        candidates = self._candidates(decl, mod_dir, path_base)
        found = next((c for c in candidates if c.is_file()), None)
        if found is None:
            tried = ", ".join(str(c) for c in candidates)
            errors.append(InlineError(candidates[0], current_file, decl.name, ErrorKind.IO,
                                      f"file not found for module `{decl.name}` (tried {tried})"))
            return item

        if found.resolve() in stack:
            errors.append(InlineError(found, current_file, decl.name, ErrorKind.CYCLE,
                                      f"module `{decl.name}` includes itself"))
            return item

        try:
            text = found.read_text(encoding="utf-8")
            unit = parse_file(text, str(found))
        except (OSError, UnicodeDecodeError) as e:
            errors.append(InlineError(found, current_file, decl.name, ErrorKind.IO, str(e)))
            return item
        except SourceParseError as e:
            errors.append(InlineError(found, current_file, decl.name, ErrorKind.PARSE, str(e)))
            return item

        logger.debug(f"Inlining {found} as mod {decl.name}")
        if found.name == "mod.rs":
            child_dir = found.parent
        else:
            child_dir = found.parent / found.stem
        stack.append(found.resolve())
        try:
            inner = self._inline_items(unit.items, found, child_dir, found.parent, errors, stack)
        finally:
            stack.pop()
        return decl.with_body(self._body_tokens(unit.attrs, inner))

    @staticmethod
    def _candidates(decl: ModuleDecl, mod_dir: Path, path_base: Path) -> List[Path]:
        if decl.path_attr:
            return [path_base / decl.path_attr]
        return [mod_dir / f"{decl.name}.rs", mod_dir / decl.name / "mod.rs"]

    @staticmethod
    def _body_tokens(attrs, items: Sequence) -> tuple:
        return flatten([attr.to_tokens() for attr in attrs] + [item.to_tokens() for item in items])
