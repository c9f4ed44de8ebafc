"""
Tests for the printer backends.

The CUPS backend is tested by replacing subprocess.run, so `lp` never runs.
"""

import subprocess

import pytest

from lifecycle.errors import PrintFailure
from printing.cups import CupsPrinter
from printing.dry_run import DryRunPrinter
from printing.options import PrintOptions
from printing.registry import get_printer


def _completed(returncode=0, stdout="request id is lab-1 (1 file(s))", stderr=""):
    return subprocess.CompletedProcess(args=["lp"], returncode=returncode, stdout=stdout, stderr=stderr)


def test_command_for_default_printer_all_pages():
    command = CupsPrinter().build_command("/tmp/a.pdf", PrintOptions())
    assert command == ["lp", "-n", "1", "/tmp/a.pdf"]


def test_command_with_printer_copies_and_pages():
    options = PrintOptions(copies=3, page_range="1-2,5", printer="lab-laser")
    command = CupsPrinter().build_command("/tmp/a.pdf", options)
    assert command == ["lp", "-d", "lab-laser", "-n", "3", "-P", "1-2,5", "/tmp/a.pdf"]


def test_print_file_runs_lp(monkeypatch):
    calls = []

    def fake_run(command, **kwargs):
        calls.append((command, kwargs))
        return _completed()

    monkeypatch.setattr(subprocess, "run", fake_run)
    CupsPrinter(timeout=5).print_file("/tmp/a.pdf", PrintOptions(copies=2))

    command, kwargs = calls[0]
    assert command == ["lp", "-n", "2", "/tmp/a.pdf"]
    assert kwargs["timeout"] == 5


def test_nonzero_exit_is_a_print_failure(monkeypatch):
    monkeypatch.setattr(
        subprocess, "run",
        lambda command, **kwargs: _completed(returncode=1, stdout="", stderr="lp: No such printer"),
    )
    with pytest.raises(PrintFailure, match="No such printer"):
        CupsPrinter().print_file("/tmp/a.pdf", PrintOptions())


def test_timeout_is_a_print_failure(monkeypatch):
    def fake_run(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(subprocess, "run", fake_run)
    with pytest.raises(PrintFailure, match="timed out"):
        CupsPrinter(timeout=1).print_file("/tmp/a.pdf", PrintOptions())


def test_missing_lp_is_a_print_failure(monkeypatch):
    def fake_run(command, **kwargs):
        raise FileNotFoundError("lp")

    monkeypatch.setattr(subprocess, "run", fake_run)
    with pytest.raises(PrintFailure, match="could not run lp"):
        CupsPrinter().print_file("/tmp/a.pdf", PrintOptions())


def test_dry_run_records_prints(tmp_path):
    path = tmp_path / "a.pdf"
    path.write_bytes(b"%PDF")
    printer = DryRunPrinter()

    printer.print_file(str(path), PrintOptions(copies=2))
    assert printer.printed == [(str(path), PrintOptions(copies=2))]


def test_dry_run_missing_file_fails(tmp_path):
    with pytest.raises(PrintFailure):
        DryRunPrinter().print_file(str(tmp_path / "missing.pdf"), PrintOptions())


def test_registry():
    assert isinstance(get_printer("cups"), CupsPrinter)
    assert get_printer("dry_run").backend_name == "dry_run"
    with pytest.raises(ValueError, match="Unknown printer backend"):
        get_printer("laser-beam")
