"""
CUPS backend — hands the file to `lp`.

    lp [-d <printer>] -n <copies> [-P <pages>] <file>

`lp` returns as soon as the CUPS scheduler has queued the job, so the timeout
only has to cover spooling, not the physical print.
"""

import logging
import subprocess

from lifecycle.errors import PrintFailure
from printing.base import AbstractPrinter
from printing.options import PrintOptions

logger = logging.getLogger(__name__)


class CupsPrinter(AbstractPrinter):

    def __init__(self, timeout: float = 300.0, lp_command: str = "lp"):
        self._timeout = timeout
        self._lp_command = lp_command

    def build_command(self, path: str, options: PrintOptions) -> list[str]:
        command = [self._lp_command]
        if options.printer:
            command += ["-d", options.printer]
        command += ["-n", str(options.copies)]
        if not options.all_pages:
            command += ["-P", options.page_range]
        command.append(path)
        return command

    def print_file(self, path: str, options: PrintOptions) -> None:
        command = self.build_command(path, options)
        logger.debug(f"Running {' '.join(command)}")
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise PrintFailure(f"lp timed out after {self._timeout:.0f}s") from e
        except OSError as e:
            raise PrintFailure(f"could not run {self._lp_command}: {e}") from e

        if completed.returncode != 0:
            reason = (completed.stderr or completed.stdout or "").strip()
            raise PrintFailure(f"lp exited with {completed.returncode}: {reason}")

        logger.info(f"Spooled {path}: {completed.stdout.strip()}")

    @property
    def backend_name(self) -> str:
        return "cups"
