# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of the Script Bundle tool.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

import logging
import subprocess
from pathlib import Path

from .errors import FormatterError

logger = logging.getLogger("formatter")


class RustFormatter:
    """Formats a file in place by running rustfmt on it."""

    def __init__(self, command: str = "rustfmt"):
        self.command = command

    def format_file(self, path: Path) -> None:
        try:
            result = subprocess.run(
                [self.command, str(path)],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise FormatterError(f"Failed to run {self.command} on {path}") from e

        if result.returncode != 0:
            logger.error(f"{self.command} exited with {result.returncode}: {result.stderr.strip()}")
            raise FormatterError(f"Failed to run {self.command} on {path}")
        logger.info(f"Formatted {path}")
