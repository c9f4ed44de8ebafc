"""
Error taxonomy shared by the API, the worker and the sweeper.

    PrintQueueError
    ├── InvalidRequestError       → 400
    ├── JobNotFoundError          → 404
    ├── InvalidTransitionError    → 409, never retried
    ├── ConcurrentConflictError   → 409 for users, "skip" for worker claims
    ├── StoreError                → 500
    │   ├── TransientStoreError   (network/timeout, after bounded retries)
    │   └── BlobStoreError
    └── PrintFailure              → job recorded as FAILED

api/main.py maps these onto the {success, error} envelope. The messages here
are safe to show to callers; store exceptions are chained, not echoed.
"""


class PrintQueueError(Exception):
    """Base class for every error this project raises on purpose."""


class InvalidRequestError(PrintQueueError, ValueError):
    """Malformed caller input: bad copies, bad page range, bad status value."""


class JobNotFoundError(PrintQueueError):

    def __init__(self, job_id):
        self.job_id = job_id
        super().__init__("Job not found")


class InvalidTransitionError(PrintQueueError):

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid status transition: {current} -> {target}")


class ConcurrentConflictError(PrintQueueError):
    """The conditional write matched zero rows: someone else moved the job first."""

    def __init__(self, job_id, expected: str):
        self.job_id = job_id
        self.expected = expected
        super().__init__("Job status changed concurrently. Retry.")


class StoreError(PrintQueueError):
    """Generic store failure. The public message never includes driver text."""

    def __init__(self, message: str = "Store failure"):
        super().__init__(message)


class TransientStoreError(StoreError):
    """A network-classified failure that outlived the retry budget."""


class BlobStoreError(StoreError):
    pass


class PrintFailure(PrintQueueError):
    """The print operation reported failure. Terminal for the job."""
