"""
Shared enumerations used across the entire project.

Using Python enums (inheriting from str) means:
- They serialize to JSON automatically ("PENDING", not "JobStatus.PENDING")
- They compare equal to the plain strings stored in the status column
- They work as FastAPI query parameters
- Typos become immediate errors instead of silent bugs
"""

import enum


class JobStatus(str, enum.Enum):
    PENDING = "PENDING"        # uploaded, waiting for an approver
    APPROVED = "APPROVED"      # approved, waiting for a worker to claim it
    REJECTED = "REJECTED"      # turned down by an approver (terminal)
    PRINTING = "PRINTING"      # claimed by exactly one worker
    DONE = "DONE"              # printed successfully (terminal)
    FAILED = "FAILED"          # download or print failed (terminal)


class PollState(str, enum.Enum):
    IDLE = "IDLE"              # no poll cycle running
    POLLING = "POLLING"        # a cycle is active; new triggers are dropped


class JobOutcome(str, enum.Enum):
    SKIPPED = "SKIPPED"        # claim lost to another worker
    DONE = "DONE"
    FAILED = "FAILED"


class StorageBackend(str, enum.Enum):
    LOCAL = "local"
    S3 = "s3"


class PrinterBackend(str, enum.Enum):
    CUPS = "cups"              # shells out to `lp`
    DRY_RUN = "dry_run"        # logs the request, prints nothing
