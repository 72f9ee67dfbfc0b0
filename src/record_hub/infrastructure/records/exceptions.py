"""
Exception hierarchy for the record loader.

Only explicit backend failures are true errors during batch loading; a tier
that simply finds nothing is normal and drives progression to the next tier.
"""

from typing import Iterable, Optional


class RecordLoaderError(Exception):
    """Base exception for all record loading errors."""

    pass


class RecordNotFoundError(RecordLoaderError):
    """
    Raised when a single record cannot be found in any tier.

    Args:
        source: Record source that was searched
        record_id: Requested record ID
    """

    def __init__(self, source: str, record_id: Optional[str]):
        self.source = source
        self.record_id = record_id
        super().__init__(f"Record {source}:{record_id} does not exist.")


class BackendError(RecordLoaderError):
    """
    Raised by search backends when a retrieve call itself fails.

    Distinct from "not found": a backend that finds nothing returns an empty
    result instead of raising.
    """

    pass


class BackendFailureError(RecordLoaderError):
    """
    Raised when a batch backend call fails and failures are not tolerated.

    Args:
        source: Record source whose backend failed
        cause: The underlying BackendError
    """

    def __init__(self, source: str, cause: BaseException):
        self.source = source
        self.cause = cause
        super().__init__(
            f"Exception when trying to retrieve records from {source}: {cause}"
        )


class PositionClaimError(RecordLoaderError):
    """
    Raised when a resolved record matches no unclaimed requested position.

    This indicates a collaborator returned something other than what was
    requested; the batch reconciler drops such records.
    """

    def __init__(self, source: str, record_id: str, previous_id: Optional[str] = None):
        self.source = source
        self.record_id = record_id
        self.previous_id = previous_id

        context_parts = [f"source='{source}'", f"id='{record_id}'"]
        if previous_id:
            context_parts.append(f"previous_id='{previous_id}'")
        super().__init__(
            f"No unclaimed requested position for record ({', '.join(context_parts)})"
        )


class InvalidIdentifierError(RecordLoaderError, ValueError):
    """Raised when a batch request element cannot be parsed."""

    pass


class FallbackLoaderNotFoundError(RecordLoaderError, KeyError):
    """Raised when no fallback loader is registered for a source."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"No fallback loader registered for source '{source}'")

    def __str__(self) -> str:
        return str(self.args[0])


class ResolutionTimeoutError(RecordLoaderError):
    """
    Raised when a resolution deadline passes before all sources finished.

    Args:
        timeout: Configured timeout in seconds
        pending_sources: Sources that had not completed
    """

    def __init__(self, timeout: Optional[float], pending_sources: Iterable[str] = ()):
        self.timeout = timeout
        self.pending_sources = list(pending_sources)
        message = f"Record resolution exceeded timeout of {timeout}s"
        if self.pending_sources:
            message += f" (pending sources: {', '.join(self.pending_sources)})"
        super().__init__(message)


class ResolutionCancelledError(RecordLoaderError):
    """Raised at a tier boundary once the resolution context was cancelled."""

    pass
