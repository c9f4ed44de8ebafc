"""
Dry-run backend — logs what would be printed and prints nothing.

Useful for demos and for running a worker on a machine without a printer.
`fail` makes every print raise, which exercises the FAILED path and the
operator follow-up list on demand.
"""

import logging
import os

from lifecycle.errors import PrintFailure
from printing.base import AbstractPrinter
from printing.options import PrintOptions

logger = logging.getLogger(__name__)


class DryRunPrinter(AbstractPrinter):

    def __init__(self, fail: bool = False):
        self._fail = fail
        self.printed: list[tuple[str, PrintOptions]] = []

    def print_file(self, path: str, options: PrintOptions) -> None:
        if self._fail:
            raise PrintFailure("Simulated print failure")
        if not os.path.exists(path):
            raise PrintFailure(f"File to print does not exist: {path}")

        self.printed.append((path, options))
        logger.info(
            f"[dry run] would print {path} "
            f"(copies={options.copies}, pages={options.page_range}, "
            f"printer={options.printer or 'default'})"
        )

    @property
    def backend_name(self) -> str:
        return "dry_run"
