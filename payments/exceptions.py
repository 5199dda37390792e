"""
Payment Bridge Errors

Every failure the bridge surfaces derives from BridgeError so callers (and the
HTTP layer) can tell bridge failures apart from programming errors.
"""


class BridgeError(Exception):
    """Base class for payment bridge failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(BridgeError):
    """A required collaborator or credential was not supplied."""


class ProcessorError(BridgeError):
    """The payment processor rejected a call or could not be reached."""

    def __init__(
        self, message: str, code: str | None = None, http_status: int | None = None
    ):
        super().__init__(message)
        self.code = code
        self.http_status = http_status


class VerificationError(BridgeError):
    """Micro-deposit verification of a bank account failed."""

    def __init__(self, message: str, http_status: int | None = None):
        super().__init__(message)
        self.http_status = http_status


class UnverifiedBankAccountError(BridgeError):
    """A bank account was charged before its micro-deposits were verified."""


class IdentityVerificationError(BridgeError):
    """The processor has not confirmed the account holder's identity."""


class IdentityPendingError(IdentityVerificationError):
    pass


class IdentityUnverifiedError(IdentityVerificationError):
    pass


class IdentityStatusMissingError(IdentityVerificationError):
    pass
