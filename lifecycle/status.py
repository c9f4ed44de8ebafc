"""
Status model — the single source of truth for which transitions are legal.

    PENDING ──approve──> APPROVED ──claim──> PRINTING ──finish──> DONE
       │                                          │
       └──reject──> REJECTED                      └──finish──> FAILED

Everything here is pure: no store access, no clock, no logging. The lifecycle
manager, the worker and the API all ask `can_transition()` before writing.

Two vocabularies matter:
- ALLOWED_STATUS_VALUES: every status, valid as a list filter
- ALLOWED_STATUS_UPDATES: what a worker may write through PUT /status.
  Approve/reject have their own endpoints; workers never approve.
"""

from models.enums import JobStatus

ALLOWED_STATUS_VALUES: tuple[str, ...] = (
    JobStatus.PENDING.value,
    JobStatus.APPROVED.value,
    JobStatus.PRINTING.value,
    JobStatus.DONE.value,
    JobStatus.FAILED.value,
    JobStatus.REJECTED.value,
)

ALLOWED_STATUS_UPDATES: tuple[str, ...] = (
    JobStatus.PRINTING.value,
    JobStatus.DONE.value,
    JobStatus.FAILED.value,
)

STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    JobStatus.PENDING.value: frozenset({JobStatus.APPROVED.value, JobStatus.REJECTED.value}),
    JobStatus.APPROVED.value: frozenset({JobStatus.PRINTING.value}),
    JobStatus.PRINTING.value: frozenset({JobStatus.DONE.value, JobStatus.FAILED.value}),
    JobStatus.DONE.value: frozenset(),
    JobStatus.FAILED.value: frozenset(),
    JobStatus.REJECTED.value: frozenset(),
}

TERMINAL_STATUSES: frozenset[str] = frozenset(
    status for status, targets in STATUS_TRANSITIONS.items() if not targets
)

# Stale-job recovery moves PRINTING back to APPROVED. It is not a lifecycle
# edge: only worker/recovery.py writes it, guarded on status = PRINTING.
RECOVERY_TRANSITION: tuple[str, str] = (JobStatus.PRINTING.value, JobStatus.APPROVED.value)


def _value(status) -> str:
    return status.value if isinstance(status, JobStatus) else str(status)


def can_transition(current, target) -> bool:
    """True only for edges of the lifecycle graph. Unknown statuses are never legal."""
    return _value(target) in STATUS_TRANSITIONS.get(_value(current), frozenset())


def is_terminal(status) -> bool:
    return _value(status) in TERMINAL_STATUSES
