"""Error taxonomy for opt-in regions automation.

Every failure raised by the collaborators is translated into one of these
types at the boundary where boto3 is called, so the poll cycle can decide
per error class whether a pair is merely incomplete or the invocation
must fail.
"""

from typing import Optional


class OptInRegionsError(Exception):
    """Base exception for opt-in regions operations."""
    pass


class FederationError(OptInRegionsError):
    """Raised when delegated credentials cannot be obtained for an account."""

    def __init__(self, message: str, account_id: str,
                 role_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.account_id = account_id
        self.role_name = role_name


class ThrottlingError(OptInRegionsError):
    """Raised when an API call is still throttled after all retries."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class ProviderApiError(OptInRegionsError):
    """Raised when an AWS Account API call fails."""

    def __init__(self, message: str, operation: str,
                 error_code: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.error_code = error_code


class PropsValidationError(OptInRegionsError):
    """Raised when custom resource properties are missing or malformed."""
    pass
