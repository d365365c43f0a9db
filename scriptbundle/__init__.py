"""
script-bundle: turn a Rust binary and its crates into a single rust-script file.

  - tokens.py    → token trees (Ident, Punct, Literal, Group)
  - lexer.py     → Rust source → token trees (lark grammar rust_tokens.lark)
  - syntax.py    → CompilationUnit, Attribute, Item, NamedModule
  - printer.py   → token trees → source text, doc attributes as `///`
  - inliner.py   → `mod foo;` → `mod foo { ... }`
  - manifest.py  → Cargo.toml
  - bundler.py   → the pipeline
"""
from .bundler import Bundler, inline_module, modulize_crate, new_manifest_comment
from .errors import (
    BundleError,
    BundleIOError,
    EnvironmentConfigError,
    FormatterError,
    InlineFailure,
    InvariantViolation,
    ManifestError,
    SourceParseError,
)
from .printer import FilePrinter, render_tokens, render_unit
from .syntax import Attribute, AttrStyle, CompilationUnit, Item, NamedModule, parse_file

__version__ = "0.1.0"
