# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import EnvironmentConfigError

DEFAULT_SHEBANG = "#!/usr/bin/env -S rust-script"
FOOTER = "// vim: ft=rust syntax=rust"


class BundleSettings(BaseSettings):
    """
    Bundler configuration read from the environment.

    `OUT_DIR` and `CARGO_MANIFEST_DIR` keep the names cargo sets for build
    scripts; everything else uses the `SCRIPT_BUNDLE_` prefix.
    """
    model_config = SettingsConfigDict(
        env_prefix="SCRIPT_BUNDLE_",
        extra="ignore",
        populate_by_name=True,
    )

    out_dir: Optional[Path] = Field(default=None, validation_alias="OUT_DIR")
    manifest_dir: Optional[Path] = Field(default=None, validation_alias="CARGO_MANIFEST_DIR")

    shebang: str = DEFAULT_SHEBANG
    run_rustfmt: bool = False
    rustfmt: str = "rustfmt"
    log_level: str = "WARNING"


def load_settings() -> BundleSettings:
    """Read settings from the environment, wrapping validation failures."""
    try:
        return BundleSettings()
    except ValidationError as e:
        raise EnvironmentConfigError("Invalid bundler configuration in environment") from e
