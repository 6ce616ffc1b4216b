"""Domain error taxonomy.

Every error raised by the service layer is a :class:`DomainError`. The HTTP
error handler maps ``status_code`` to the response status and echoes
``error_type`` so clients can branch without parsing messages.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all reefsync service errors."""

    status_code: int = 500
    error_type: str = "DomainError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Malformed input or a caller-side precondition that does not hold."""

    status_code = 400
    error_type = "ValidationError"


class NotFoundError(DomainError):
    """A referenced entity does not exist off-chain."""

    status_code = 404
    error_type = "NotFoundError"


class ConflictError(DomainError):
    """A valid request that cannot proceed given the current state."""

    status_code = 409
    error_type = "ConflictError"


class OnChainError(DomainError):
    """A ledger call failed.

    ``tx_hash`` is the transaction hash of the last on-chain step that did
    succeed before the failure, when there was one.
    """

    status_code = 500
    error_type = "OnChainError"

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class DatabaseError(DomainError):
    """Relational store failure not covered by the other kinds."""

    status_code = 500
    error_type = "DatabaseError"


class OffChainCommitError(DatabaseError):
    """Off-chain persistence failed after on-chain mutations already landed.

    The off-chain side has been compensated; the listed transactions are on
    the ledger and must be reconciled by an operator.
    """

    error_type = "OffChainCommitError"

    def __init__(self, message: str, tx_hashes: list[str]) -> None:
        super().__init__(message)
        self.tx_hashes = list(tx_hashes)
