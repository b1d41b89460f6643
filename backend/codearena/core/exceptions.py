"""Error hierarchy rendered by the API as ErrorResponse bodies

Each class pins its HTTP status; callers only supply the message and,
where useful, a details mapping that is echoed back to the client.
"""

from typing import Any, Dict, Optional


class BaseAPIException(Exception):
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(BaseAPIException):
    status_code = 401
    default_message = "Authentication failed"


class ResourceNotFoundError(BaseAPIException):
    """Raised with the resource label, e.g. ``ResourceNotFoundError("Contest")``"""
    status_code = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")


class ResourceAlreadyExistsError(BaseAPIException):
    status_code = 409

    def __init__(self, resource: str):
        super().__init__(f"{resource} already exists")


class ValidationError(BaseAPIException):
    status_code = 422
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class UnsupportedLanguageError(ValidationError):
    def __init__(self, language: str):
        super().__init__(f"Unsupported language: {language}", details={"language": language})


class ProblemConfigurationError(ValidationError):
    """The problem exists but cannot be judged, typically for lack of test cases"""


# Contest rules, all 400
class BusinessLogicError(BaseAPIException):
    status_code = 400


class ContestNotActiveError(BusinessLogicError):
    default_message = "Contest is not currently running"


class ContestFullError(BusinessLogicError):
    default_message = "Contest is full"


class NotRegisteredError(BusinessLogicError):
    default_message = "You are not registered for this contest"


class CodeExecutionError(BaseAPIException):
    default_message = "Code execution failed"


class ExecutionBackendError(CodeExecutionError):
    """Sandbox unreachable, timed out, or answered with a body we cannot use"""
    status_code = 502
    default_message = "Execution backend unavailable"


class QueueFullError(BaseAPIException):
    status_code = 503
    default_message = "Judge is busy. Please try again shortly."
