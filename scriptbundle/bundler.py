# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Bundler: folds a binary and its library crates into one rust-script file.

    Bundler.new_with_dir("src/main.rs", out_dir, manifest_dir) \\
        .with_lib() \\
        .bundle(Path("app.rs"))

Stages run in order and the first failure aborts: load the binary, load
and modulize every crate, merge, render, write, then optionally format.
Nothing is written unless every crate loaded.
"""
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .config import DEFAULT_SHEBANG, FOOTER, BundleSettings, load_settings
from .errors import BundleIOError, EnvironmentConfigError, InlineFailure
from .formatter import RustFormatter
from .inliner import ModuleInliner
from .literals import quote_str
from .manifest import read_manifest
from .printer import render_unit
from .syntax import Attribute, AttrStyle, CompilationUnit, NamedModule
from .tokens import Literal, Punct

logger = logging.getLogger("bundler")


def inline_module(path: Path, inliner=None) -> CompilationUnit:
    """Load `path` with all its modules inlined; any inliner error is fatal."""
    inliner = inliner or ModuleInliner()
    unit, errors = inliner.parse_and_inline_modules(path)
    for err in errors:
        raise InlineFailure(
            f"Error when parsing {err.path}, included by {err.src_path} as mod {err.module_name}: {err}"
        )
    return unit


def modulize_crate(name: str, file: CompilationUnit) -> NamedModule:
    """Wrap a crate's items as `mod <name> { ... }`, dropping its shebang and inner attributes."""
    if file.attrs:
        logger.debug(f"Dropping {len(file.attrs)} crate attribute(s) of {name}")
    return NamedModule(name=name, items=list(file.items))


def new_manifest_comment(content: str) -> List[Attribute]:
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    lines = ["```cargo"] + [line[:-1] if line.endswith("\r") else line for line in lines] + ["```"]
    return [
        Attribute("doc", (Punct("="), Literal(quote_str(f" {line}"))), AttrStyle.INNER)
        for line in lines
    ]


class Bundler:

    def __init__(self, binary, out_dir, manifest_dir, *, inliner=None, formatter=None,
                 shebang: str = DEFAULT_SHEBANG):
        manifest_dir = Path(manifest_dir)
        self.manifest, self.manifest_str = read_manifest(manifest_dir)
        self.manifest_dir = manifest_dir
        self.binary_path = manifest_dir / binary
        self.crates: List[Tuple[str, Path]] = []
        self.out_dir = Path(out_dir)
        self.inliner = inliner or ModuleInliner()
        self.formatter = formatter
        self.shebang = shebang

    @classmethod
    def new_with_dir(cls, binary, out_dir, manifest_dir, **kwargs) -> "Bundler":
        return cls(binary, out_dir, manifest_dir, **kwargs)

    @classmethod
    def from_env(cls, binary, settings: Optional[BundleSettings] = None, **kwargs) -> "Bundler":
        """Build from `OUT_DIR` and `CARGO_MANIFEST_DIR`, as set for cargo build scripts."""
        settings = settings or load_settings()
        if settings.out_dir is None:
            raise EnvironmentConfigError("Missing OUT_DIR env var")
        if settings.manifest_dir is None:
            raise EnvironmentConfigError("Missing CARGO_MANIFEST_DIR env var")
        kwargs.setdefault("shebang", settings.shebang)
        return cls(binary, settings.out_dir, settings.manifest_dir, **kwargs)

    def with_lib(self) -> "Bundler":
        lib = self.manifest.lib
        if lib is not None and lib.name and lib.path:
            self.crates.append((lib.name, self.manifest_dir / lib.path))
        else:
            logger.warning(f"No library target in {self.manifest_dir}, nothing to include")
        return self

    def with_crate_at(self, name: str, root) -> "Bundler":
        self.crates.append((name, Path(root)))
        return self

    def with_formatter(self, formatter=None) -> "Bundler":
        if formatter is None:
            formatter = RustFormatter()
        self.formatter = formatter
        return self

    def bundle(self, target) -> Path:
        """
        Expand the binary to `target`, which is relative to the output dir.
        Also write a rust-script compatible header and vim file type footer.

        Returns:
            The path of the written file.
        """
        target = self.out_dir / target

        binary = inline_module(self.binary_path, self.inliner)
        logger.info(f"Loaded {self.binary_path} ({len(binary.items)} items)")

        libs = []
        for name, path in self.crates:
            lib = modulize_crate(name, inline_module(path, self.inliner))
            logger.info(f"Loaded crate {name} from {path} ({len(lib.items)} items)")
            libs.append(lib)

        self._warn_on_collisions(binary, libs)
        binary.items.extend(libs)
        binary.shebang = self.shebang
        binary.attrs[:0] = new_manifest_comment(self.manifest_str)

        text = render_unit(binary)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8") as bundle:
                bundle.write(f"{text}\n")
                bundle.write(f"{FOOTER}\n")
        except OSError as e:
            raise BundleIOError(f"Failed to write bundle to {target}", path=str(target)) from e
        logger.info(f"Wrote {target}")

        if self.formatter is not None:
            self.formatter.format_file(target)

        return target

    @staticmethod
    def _warn_on_collisions(binary: CompilationUnit, libs: List[NamedModule]) -> None:
        seen = {item.name for item in binary.items if item.name and item.keyword != "use"}
        for lib in libs:
            if lib.name in seen:
                logger.warning(f"Crate {lib.name} collides with an existing item of the same name")
            seen.add(lib.name)
