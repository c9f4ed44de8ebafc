"""
Abstract base class for print backends.

The worker calls printer.print_file(path, options) without knowing whether it
is talking to CUPS or to a dry run — it looks the backend up from the registry
by name (PRINTER_BACKEND).

To add a new backend:
1. Create a class that inherits AbstractPrinter
2. Implement print_file() and backend_name
3. Add it to printing/registry.py
"""

from abc import ABC, abstractmethod

from printing.options import PrintOptions


class AbstractPrinter(ABC):

    @abstractmethod
    def print_file(self, path: str, options: PrintOptions) -> None:
        """
        Send a local file to the printer. Synchronous: returns once the
        backend has accepted (or refused) the job.

        Raises:
            PrintFailure → the worker marks the job FAILED. The message is
            logged, never interpreted.
        """
        ...

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Unique identifier matching PrinterBackend (e.g., 'cups', 'dry_run')."""
        ...
