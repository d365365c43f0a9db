# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import BundleIOError, ManifestError

logger = logging.getLogger("manifest")

MANIFEST_NAME = "Cargo.toml"
DEFAULT_LIB_PATH = "src/lib.rs"


@dataclass
class Product:
    """A `[lib]` (or `[[bin]]`) target of a manifest."""
    name: Optional[str] = None
    path: Optional[str] = None


@dataclass
class Manifest:
    package_name: Optional[str] = None
    lib: Optional[Product] = None

    @classmethod
    def from_str(cls, text: str) -> "Manifest":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"Invalid manifest: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        package = data.get("package")
        package_name = package.get("name") if isinstance(package, dict) else None
        lib = None
        lib_table = data.get("lib")
        if isinstance(lib_table, dict):
            lib = Product(name=lib_table.get("name"), path=lib_table.get("path"))
        return cls(package_name=package_name, lib=lib)

    def complete_from_path(self, manifest_path: Path) -> None:
        """Fill in the library target cargo would infer from the file layout."""
        root = manifest_path.parent
        if self.lib is None:
            if not (root / DEFAULT_LIB_PATH).is_file():
                return
            self.lib = Product()
        if self.lib.name is None and self.package_name:
            self.lib.name = self.package_name.replace("-", "_")
        if self.lib.path is None:
            self.lib.path = DEFAULT_LIB_PATH


def read_manifest(manifest_dir: Path) -> Tuple[Manifest, str]:
    """Load `Cargo.toml` from `manifest_dir`, returning it and its raw text."""
    manifest_path = Path(manifest_dir) / MANIFEST_NAME
    try:
        manifest_str = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise BundleIOError(f"Failed to read manifest at {manifest_path}", path=str(manifest_path)) from e

    manifest = Manifest.from_str(manifest_str)
    manifest.complete_from_path(manifest_path)
    logger.debug(f"Loaded manifest {manifest_path} (package={manifest.package_name})")
    return manifest, manifest_str
