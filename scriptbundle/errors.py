# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

from typing import Optional


class BundleError(Exception):
    """Base exception for bundling errors."""
    pass


class SourceParseError(BundleError):
    """Rust source could not be tokenized."""

    def __init__(self, message: str, path: str = "<unknown>", line: int = -1, column: int = -1):
        super().__init__(message)
        self.path = path
        self.line = line
        self.column = column


class InlineFailure(BundleError):
    """The module inliner reported an error for an included file."""
    pass


class ManifestError(BundleError):
    """Cargo.toml could not be parsed."""
    pass


class EnvironmentConfigError(BundleError):
    """A required directory setting is missing."""
    pass


class BundleIOError(BundleError):
    """Reading the manifest or writing the bundle failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class FormatterError(BundleError):
    """The external formatter failed on the written bundle."""
    pass


class InvariantViolation(BundleError):
    """A structural tree broke an invariant the printer relies on."""
    pass
