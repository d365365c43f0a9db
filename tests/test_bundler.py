"""
Bundler Tests

Manifest embedding, crate modulization and the full pipeline against real
files and against in-memory fakes of the inliner and formatter.
"""
import unittest
from pathlib import Path

import pytest

from scriptbundle.bundler import Bundler, inline_module, modulize_crate, new_manifest_comment
from scriptbundle.config import BundleSettings
from scriptbundle.errors import (
    EnvironmentConfigError,
    FormatterError,
    InlineFailure,
    SourceParseError,
)
from scriptbundle.inliner import ErrorKind, InlineError
from scriptbundle.printer import render_unit
from scriptbundle.syntax import AttrStyle, CompilationUnit, Item, NamedModule, parse_file
from scriptbundle.tokens import Ident

FOOTER = "// vim: ft=rust syntax=rust\n"


class FakeInliner:
    """Serves pre-parsed units by path."""

    def __init__(self, sources, errors=None):
        self.sources = sources
        self.errors = errors or {}
        self.calls = []

    def parse_and_inline_modules(self, path):
        self.calls.append(Path(path))
        key = Path(path).name
        return parse_file(self.sources[key], str(path)), list(self.errors.get(key, []))


class FakeFormatter:

    def __init__(self, fail=False):
        self.fail = fail
        self.formatted = []

    def format_file(self, path):
        self.formatted.append(path)
        if self.fail:
            raise FormatterError(f"Failed to run rustfmt on {path}")


class TestNewManifestComment(unittest.TestCase):

    def test_two_lines_are_fenced(self):
        attrs = new_manifest_comment('[package]\nname = "x"\n')
        self.assertEqual([a.value for a in attrs], [" ```cargo", " [package]", ' name = "x"', " ```"])
        for attr in attrs:
            self.assertEqual(attr.style, AttrStyle.INNER)
            self.assertTrue(attr.is_doc)

    def test_empty_manifest(self):
        self.assertEqual([a.value for a in new_manifest_comment("")], [" ```cargo", " ```"])

    def test_crlf_and_blank_lines(self):
        attrs = new_manifest_comment("a\r\n\r\nb")
        self.assertEqual([a.value for a in attrs], [" ```cargo", " a", " ", " b", " ```"])


class TestModulizeCrate(unittest.TestCase):

    def test_preserves_member_count_and_order(self):
        unit = parse_file("#!/x\n//! lib docs\nfn a() {}\nstruct B;\nmod c {}\n")
        module = modulize_crate("lib1", unit)
        self.assertIsInstance(module, NamedModule)
        self.assertEqual(module.name, "lib1")
        self.assertEqual([item.name for item in module.items], ["a", "B", "c"])
        self.assertEqual(module.items, unit.items)

    def test_drops_crate_attributes(self):
        unit = parse_file("#![allow(unused)]\nfn a() {}\n")
        module = modulize_crate("lib1", unit)
        text = render_unit(CompilationUnit(items=[module]))
        self.assertEqual(text, "mod lib1 {\n fn a ( ) {\n }\n }\n\n\n")


def test_inline_module_raises_first_error():
    err = InlineError(Path("src/x.rs"), Path("src/main.rs"), "x", ErrorKind.IO, "file not found")
    inliner = FakeInliner({"main.rs": "mod x;"}, {"main.rs": [err]})
    with pytest.raises(InlineFailure) as exc_info:
        inline_module(Path("src/main.rs"), inliner)
    assert str(exc_info.value) == (
        "Error when parsing src/x.rs, included by src/main.rs as mod x: io error: file not found"
    )


def test_end_to_end_single_function(make_crate, tmp_path):
    root = make_crate({"Cargo.toml": 'name = "x"', "src/main.rs": "fn main() {}\n"})
    out_dir = tmp_path / "out"

    target = Bundler(Path("src/main.rs"), out_dir, root).bundle(Path("nested/app.rs"))

    assert target == out_dir / "nested/app.rs"
    assert target.read_text(encoding="utf-8") == (
        "#!/usr/bin/env -S rust-script\n"
        "//! ```cargo\n"
        '//! name = "x"\n'
        "//! ```\n"
        "fn main ( ) {\n }\n\n\n"
        "\n"
        + FOOTER
    )


def test_ordering_root_items_then_crates_in_call_order(make_crate, tmp_path):
    root = make_crate({
        "Cargo.toml": '[package]\nname = "app"\n',
        "src/main.rs": "struct A;\nstruct B;\n",
        "lib1/lib.rs": "pub fn one() {}\n",
        "lib2/lib.rs": "pub fn two() {}\n",
    })
    target = (
        Bundler(Path("src/main.rs"), tmp_path, root)
        .with_crate_at("lib1", root / "lib1/lib.rs")
        .with_crate_at("lib2", root / "lib2/lib.rs")
        .bundle(Path("app.rs"))
    )
    text = target.read_text(encoding="utf-8")
    positions = [text.index(s) for s in ("struct A", "struct B", "mod lib1 {", "mod lib2 {")]
    assert positions == sorted(positions)
    assert text.endswith(FOOTER)


def test_failing_crate_leaves_existing_target_untouched(make_crate, tmp_path):
    root = make_crate({
        "Cargo.toml": 'name = "x"',
        "src/main.rs": "fn main() {}\n",
        "good/lib.rs": "pub fn ok() {}\n",
        "bad/lib.rs": "pub fn broken( {}\n",
    })
    target = tmp_path / "app.rs"
    target.write_text("previous", encoding="utf-8")

    bundler = (
        Bundler(Path("src/main.rs"), tmp_path, root)
        .with_crate_at("good", root / "good/lib.rs")
        .with_crate_at("bad", root / "bad/lib.rs")
    )
    with pytest.raises(SourceParseError):
        bundler.bundle(Path("app.rs"))
    assert target.read_text(encoding="utf-8") == "previous"


def test_failing_crate_module_creates_no_target(make_crate, tmp_path):
    root = make_crate({
        "Cargo.toml": 'name = "x"',
        "src/main.rs": "fn main() {}\n",
        "lib/lib.rs": "mod gone;\n",
    })
    out_dir = tmp_path / "out"
    bundler = Bundler(Path("src/main.rs"), out_dir, root).with_crate_at("lib", root / "lib/lib.rs")

    with pytest.raises(InlineFailure) as exc_info:
        bundler.bundle(Path("app.rs"))
    assert "as mod gone" in str(exc_info.value)
    assert not out_dir.exists()


def test_with_lib_uses_manifest_library(make_crate, tmp_path):
    root = make_crate({
        "Cargo.toml": '[package]\nname = "my-app"\n',
        "src/main.rs": "use my_app::hello;\nfn main() { hello(); }\n",
        "src/lib.rs": "//! Library docs\npub fn hello() {}\n",
    })
    text = Bundler(Path("src/main.rs"), tmp_path, root).with_lib().bundle(Path("app.rs")).read_text()

    assert "mod my_app {\n pub fn hello ( ) {\n }\n }\n" in text
    assert "Library docs" not in text


def test_with_lib_without_library_adds_nothing(make_crate, tmp_path):
    root = make_crate({"Cargo.toml": '[package]\nname = "bin"\n', "src/main.rs": "fn main() {}\n"})
    bundler = Bundler(Path("src/main.rs"), tmp_path, root).with_lib()
    assert bundler.crates == []


def test_fake_collaborators(make_crate, tmp_path):
    root = make_crate({"Cargo.toml": 'name = "x"'})
    inliner = FakeInliner({"main.rs": "fn main() {}", "lib.rs": "#![no_std]\npub fn f() {}"})
    formatter = FakeFormatter()

    target = (
        Bundler("main.rs", tmp_path, root, inliner=inliner, shebang="#!/custom")
        .with_crate_at("util", "lib.rs")
        .with_formatter(formatter)
        .bundle("out.rs")
    )

    assert inliner.calls == [root / "main.rs", Path("lib.rs")]
    assert formatter.formatted == [target]
    text = target.read_text(encoding="utf-8")
    assert text.startswith("#!/custom\n//! ```cargo\n")
    assert "no_std" not in text
    assert "mod util {\n pub fn f ( ) {\n }\n }\n" in text


def test_root_shebang_and_attrs_are_replaced_and_kept(make_crate, tmp_path):
    root = make_crate({"Cargo.toml": 'name = "x"'})
    inliner = FakeInliner({"main.rs": "#!/old\n//! Root docs\n#![allow(unused)]\nfn main() {}"})

    text = Bundler("main.rs", tmp_path, root, inliner=inliner).bundle("out.rs").read_text()

    assert text.startswith(
        "#!/usr/bin/env -S rust-script\n"
        "//! ```cargo\n"
        '//! name = "x"\n'
        "//! ```\n"
        "//! Root docs\n"
        "#![allow( unused )]\n"
    )
    assert "#!/old" not in text


def test_formatter_failure_keeps_written_file(make_crate, tmp_path):
    root = make_crate({"Cargo.toml": 'name = "x"', "src/main.rs": "fn main() {}\n"})
    bundler = Bundler("src/main.rs", tmp_path, root).with_formatter(FakeFormatter(fail=True))

    with pytest.raises(FormatterError):
        bundler.bundle("app.rs")
    assert (tmp_path / "app.rs").read_text(encoding="utf-8").endswith(FOOTER)


def test_crate_name_collision_is_logged(make_crate, tmp_path, caplog):
    root = make_crate({"Cargo.toml": 'name = "x"'})
    inliner = FakeInliner({"main.rs": "mod util {}\nfn main() {}", "lib.rs": "pub fn f() {}"})

    with caplog.at_level("WARNING", logger="bundler"):
        Bundler("main.rs", tmp_path, root, inliner=inliner).with_crate_at("util", "lib.rs").bundle("out.rs")
    assert "Crate util collides" in caplog.text


class TestFromEnv:

    def test_missing_out_dir(self, monkeypatch):
        monkeypatch.delenv("OUT_DIR", raising=False)
        monkeypatch.setenv("CARGO_MANIFEST_DIR", "/tmp")
        with pytest.raises(EnvironmentConfigError, match="OUT_DIR"):
            Bundler.from_env("src/main.rs")

    def test_missing_manifest_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("OUT_DIR", str(tmp_path))
        monkeypatch.delenv("CARGO_MANIFEST_DIR", raising=False)
        with pytest.raises(EnvironmentConfigError, match="CARGO_MANIFEST_DIR"):
            Bundler.from_env("src/main.rs")

    def test_invalid_setting(self, monkeypatch, tmp_path):
        monkeypatch.setenv("OUT_DIR", str(tmp_path))
        monkeypatch.setenv("CARGO_MANIFEST_DIR", str(tmp_path))
        monkeypatch.setenv("SCRIPT_BUNDLE_RUN_RUSTFMT", "sometimes")
        with pytest.raises(EnvironmentConfigError) as exc_info:
            Bundler.from_env("src/main.rs")
        assert exc_info.value.__cause__ is not None

    def test_reads_both_directories(self, monkeypatch, make_crate, tmp_path):
        root = make_crate({"Cargo.toml": 'name = "x"', "src/main.rs": "fn main() {}\n"})
        monkeypatch.setenv("OUT_DIR", str(tmp_path / "out"))
        monkeypatch.setenv("CARGO_MANIFEST_DIR", str(root))
        monkeypatch.setenv("SCRIPT_BUNDLE_SHEBANG", "#!/env/shebang")

        bundler = Bundler.from_env("src/main.rs", BundleSettings())
        assert bundler.out_dir == tmp_path / "out"
        assert bundler.binary_path == root / "src/main.rs"
        assert bundler.bundle("a.rs").read_text().startswith("#!/env/shebang\n")


def test_named_module_tokens():
    module = NamedModule("m", [Item((Ident("x"),))])
    assert module.to_tokens()[:2] == (Ident("mod"), Ident("m"))
