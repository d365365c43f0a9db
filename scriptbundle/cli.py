# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .bundler import Bundler
from .config import load_settings
from .formatter import RustFormatter


def _crate_spec(value: str):
    name, sep, path = value.partition("=")
    if not sep or not name or not path:
        raise argparse.ArgumentTypeError(f"expected NAME=PATH, got {value!r}")
    return name, Path(path)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rust-script-bundle",
        description="Bundle a Rust binary and its crates into a single rust-script file.",
    )
    parser.add_argument("root", type=Path, help="binary entry point, relative to CRATE_DIR")
    parser.add_argument("crate_dir", type=Path, help="directory holding Cargo.toml")
    parser.add_argument("target", type=Path, help="output file")
    parser.add_argument("--lib", action="store_true", help="also include the manifest's library crate")
    parser.add_argument("--crate", dest="crates", action="append", default=[], type=_crate_spec,
                        metavar="NAME=PATH", help="include another crate root as mod NAME")
    parser.add_argument("--rustfmt", action="store_true",
                        help="run rustfmt on the written file (or set SCRIPT_BUNDLE_RUN_RUSTFMT)")
    return parser


def format_error(err: BaseException) -> str:
    """`Error: ...` followed by the chain of causes."""
    lines = [f"Error: {err}"]
    causes = []
    cause = err.__cause__ or err.__context__
    while cause is not None:
        causes.append(str(cause) or type(cause).__name__)
        cause = cause.__cause__ or cause.__context__
    if causes:
        lines.append("")
        lines.append("Caused by:")
        for i, text in enumerate(causes):
            lines.append(f"    {i}: {text}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    target = args.target
    try:
        settings = load_settings()
        logging.basicConfig(level=settings.log_level.upper())
        bundler = Bundler.new_with_dir(args.root, target.parent, args.crate_dir, shebang=settings.shebang)
        if args.lib:
            bundler.with_lib()
        for name, path in args.crates:
            bundler.with_crate_at(name, path)
        if args.rustfmt or settings.run_rustfmt:
            bundler.with_formatter(RustFormatter(settings.rustfmt))
        bundler.bundle(Path(target.name))
    except Exception as e:
        print(format_error(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
