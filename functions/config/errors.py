"""SiteLedger error handling.

Custom exceptions and error codes for the AI task services.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FIELD = "INVALID_FIELD"

    # Configuration Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # LLM Errors
    LLM_ERROR = "LLM_ERROR"
    LLM_RATE_LIMIT = "LLM_RATE_LIMIT"
    LLM_CONTEXT_TOO_LONG = "LLM_CONTEXT_TOO_LONG"
    LLM_INVALID_RESPONSE = "LLM_INVALID_RESPONSE"

    # Tool-call Protocol Errors
    PROTOCOL_MISMATCH = "PROTOCOL_MISMATCH"


class SiteLedgerError(Exception):
    """Base exception for SiteLedger errors.

    Provides structured error information for the rendering layer.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize SiteLedgerError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for display.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(SiteLedgerError):
    """Validation-specific error."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class ConfigurationError(SiteLedgerError):
    """Required configuration (e.g. an API key) is missing."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            details={"setting": setting} if setting else None
        )
        self.setting = setting


class RemoteCallError(SiteLedgerError):
    """The remote model call failed or returned something unusable."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.LLM_ERROR,
        details: Optional[Dict] = None
    ):
        super().__init__(code=code, message=message, details=details)


class ProtocolMismatchError(SiteLedgerError):
    """A tool response does not answer the outstanding tool call."""

    def __init__(
        self,
        message: str,
        expected_call_id: Optional[str] = None,
        received_call_id: Optional[str] = None
    ):
        super().__init__(
            code=ErrorCode.PROTOCOL_MISMATCH,
            message=message,
            details={
                "expected_call_id": expected_call_id,
                "received_call_id": received_call_id
            }
        )
        self.expected_call_id = expected_call_id
        self.received_call_id = received_call_id
