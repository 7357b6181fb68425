from typing import Any, Dict, Optional


class ApexError(Exception):
    """Base exception for all Apex Genesis connection errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def format_error(self):
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "type": type(self).__name__,
                "details": self.details,
            }
        }

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ApexConnectionError(ApexError):
    """Raised when there are connection-related issues."""

    def __init__(self, message: str, connection_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.connection_id = connection_id


class ApexProbeError(ApexConnectionError):
    """Raised by a prober when its transport answered but not healthily."""

    def __init__(
        self,
        message: str,
        transport_kind: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.transport_kind = transport_kind
        self.status_code = status_code


class ApexTimeoutError(ApexError):
    """Raised when a probe does not finish within its timeout."""

    def __init__(
        self, message: str, timeout_duration: Optional[float] = None, **kwargs
    ):
        super().__init__(message, **kwargs)
        self.timeout_duration = timeout_duration


class ApexConfigurationError(ApexError):
    """Raised when settings or connection definitions are invalid."""

    pass
