"""Exception hierarchy for the RFC service."""

from __future__ import annotations


class RFCServiceError(Exception):
    """Base exception for all RFC service errors."""
    pass


class ConfigurationError(RFCServiceError):
    """Raised when required configuration (tokens, repository) is missing."""
    pass


class ValidationError(RFCServiceError):
    """Raised when a request is well-formed but semantically invalid."""
    pass


class LedgerError(RFCServiceError):
    """Base exception for action ledger errors."""
    pass


class SigningError(LedgerError):
    """Raised when an entity cannot be canonically serialized for hashing."""
    pass


class BackendError(RFCServiceError):
    """Raised when a repository backend call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class BackendConnectionError(BackendError):
    """Raised when the repository backend cannot be reached."""
    pass


class BackendNotFoundError(BackendError):
    """Raised when a backend resource does not exist or is ambiguous."""
    pass


class ConsistencyError(RFCServiceError):
    """Raised when stored state contradicts what the workflow expects."""
    pass


class ArtifactParseError(ConsistencyError):
    """Raised when a stored RFC artifact cannot be parsed back into an RFC."""
    pass


class MergeabilityUndeterminedError(ConsistencyError):
    """Raised when mergeability is still unknown after all retries."""
    pass


class SchemaStoreError(RFCServiceError):
    """Raised when the downstream schema store rejects a load."""
    pass
