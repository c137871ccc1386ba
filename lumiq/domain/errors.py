from __future__ import annotations


class PreconditionError(RuntimeError):
    """Raised when an editor operation needs state the session does not have."""
