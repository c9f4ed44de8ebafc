"""
Printer registry — maps PRINTER_BACKEND names to printer classes.

Same pattern as the store factory: one place that knows every backend.
"""

from config.settings import settings
from models.enums import PrinterBackend
from printing.base import AbstractPrinter
from printing.cups import CupsPrinter
from printing.dry_run import DryRunPrinter


_REGISTRY: dict[PrinterBackend, type[AbstractPrinter]] = {
    PrinterBackend.CUPS: CupsPrinter,
    PrinterBackend.DRY_RUN: DryRunPrinter,
}


def get_printer(backend: str) -> AbstractPrinter:
    """Create the printer for `backend`. Raises ValueError if unknown."""
    try:
        key = PrinterBackend(backend)
    except ValueError:
        raise ValueError(
            f"Unknown printer backend: '{backend}'. "
            f"Available: {[b.value for b in _REGISTRY]}"
        ) from None

    cls = _REGISTRY[key]
    if key == PrinterBackend.CUPS:
        return cls(timeout=settings.PRINT_TIMEOUT_SECONDS)
    return cls()
