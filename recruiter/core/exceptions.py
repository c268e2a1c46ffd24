from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class ValidationError(AppException):
    """Request rejected before any external call was made."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=details
        )

class EmptyAnswerError(ValidationError):
    def __init__(self):
        super().__init__("Please provide an answer before continuing.")

class NotFound(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )

class ResourceDenied(AppException):
    """Storage bucket or object is missing, or the process may not touch it."""
    def __init__(self, message: str, status_code: int = 403):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code="RESOURCE_DENIED"
        )

class UpstreamUnavailable(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="UPSTREAM_UNAVAILABLE",
            details=details
        )

class UpstreamRejected(AppException):
    """The AI provider refused the request itself (bad key, unsupported input). Retrying cannot help."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="UPSTREAM_REJECTED",
            details=details
        )

class AIKillSwitchError(UpstreamUnavailable):
    def __init__(self):
        super().__init__("AI services are currently offline for maintenance.")
        self.error_code = "AI_KILL_SWITCH_ACTIVE"

class MalformedResponse(AppException):
    def __init__(self, message: str = "Failed to parse AI response", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="MALFORMED_RESPONSE",
            details=details
        )

class SpeechUnavailable(AppException):
    def __init__(self, message: str = "Speech service is not available."):
        super().__init__(
            message=message,
            status_code=503,
            error_code="SPEECH_UNAVAILABLE"
        )

class InvalidTransition(AppException):
    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=409,
            error_code="INVALID_TRANSITION"
        )

class AuthenticationError(AppException):
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTH_FAILED"
        )

class AnalysisFailed(AppException):
    """Scoring could not be completed; never to be confused with a low score."""
    def __init__(self, cause: AppException):
        super().__init__(
            message=f"Resume could not be analyzed: {cause.message}",
            status_code=cause.status_code,
            error_code="ANALYSIS_FAILED",
            details={"cause": cause.error_code}
        )
