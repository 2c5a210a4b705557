"""
Error taxonomy for the virtual endpoint engine.

These exceptions are raised inside an execution (by the capability context,
the code wrapper or the timeout race) and are converted into an
ExecutionFailure by the executor. Nothing above the executor needs to catch
them.
"""


class VirtualEndpointError(Exception):
    """Base class for all engine errors."""


class EndpointNotFound(VirtualEndpointError):
    """Raised when a capability call references an unknown real endpoint id."""

    def __init__(self, endpoint_id: str):
        self.endpoint_id = endpoint_id
        super().__init__(f"Endpoint not found: {endpoint_id}")


class RequestFailed(VirtualEndpointError):
    """Raised when a call to a real endpoint returns a non-success status."""

    def __init__(self, method: str, url: str, status_code: int, reason: str):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"{method} {url} failed: {status_code} {reason}")


class FetchFailed(VirtualEndpointError):
    """Raised when a raw fetch returns a non-success status."""

    def __init__(self, url: str, status_code: int, reason: str):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Fetch {url} failed: {status_code} {reason}")


class InvalidCall(VirtualEndpointError):
    """Raised when a parallel() entry is malformed."""

    def __init__(self, detail: str = "Invalid parallel call: missing endpoint_id"):
        super().__init__(detail)


class EmptyCode(VirtualEndpointError):
    """Raised when a virtual endpoint has no code to run."""

    def __init__(self):
        super().__init__("Virtual endpoint code is empty")


class ExecutionTimeout(VirtualEndpointError):
    """Raised when user code does not settle within the configured budget."""

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Execution timeout ({timeout_ms}ms)")


class ContextBuildError(VirtualEndpointError):
    """Raised when the execution context cannot be assembled."""


class ExecutionAborted(VirtualEndpointError):
    """Raised when user code raises a BaseException that is not an Exception, such as SystemExit."""

    def __init__(self, error: BaseException):
        self.error_type = type(error).__name__
        detail = str(error)
        super().__init__(f"{self.error_type}: {detail}" if detail else self.error_type)
