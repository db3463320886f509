"""Domain-specific exceptions"""

from typing import Optional

from safetransfer.models import EligibilityVerdict


class DomainException(Exception):
    """Base exception for the eligibility domain"""

    pass


class DataSourceUnavailableError(DomainException):
    """Transfer history could not be read. Callers must fail closed."""

    pass


class LockTimeoutError(DataSourceUnavailableError):
    """Per-client lock was not acquired in time"""

    pass


class InvalidAmountError(DomainException, ValueError):
    """Requested amount is non-positive, non-finite or not a number"""

    pass


class InvalidTransferDateError(DomainException, ValueError):
    """Transfer date is in the future or before the current window"""

    pass


class ClientNotFoundError(DomainException):
    """Client is not registered with the requesting business"""

    pass


class ClientAlreadyExistsError(DomainException):
    """Client document number is already registered with this business"""

    pass


class TransferNotFoundError(DomainException):
    """Transfer does not exist or belongs to another business"""

    pass


class InvalidStatusTransitionError(DomainException):
    """Requested status change is not allowed from the current status"""

    pass


class TransferBlockedError(DomainException):
    """Transfer would breach a regulatory limit"""

    def __init__(self, verdict: EligibilityVerdict, message: Optional[str] = None):
        super().__init__(message or verdict.reason_code)
        self.verdict = verdict
