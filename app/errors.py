"""
Errors Module
Exception types raised by the verification core and handled by the session
"""


class VerificationServiceError(Exception):
    """Base class for every error the verification core raises"""


class LoadError(VerificationServiceError):
    """The certificate dataset could not be fetched or parsed"""


class ValidationError(VerificationServiceError):
    """The submitted identifier is empty once sanitized"""


class RateLimitError(VerificationServiceError):
    """A verification attempt was blocked by the cooldown"""

    def __init__(self, remaining_seconds: int):
        super().__init__(f"Too many attempts. Try again in {remaining_seconds}s.")
        self.remaining_seconds = remaining_seconds


class ClipboardError(VerificationServiceError):
    """Copying the share link to the clipboard failed"""
