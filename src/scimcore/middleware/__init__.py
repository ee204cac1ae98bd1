from .error_handler import ErrorHandlerMiddleware, error_response
from .request_logger import RequestLoggingMiddleware

__all__ = [
    "ErrorHandlerMiddleware",
    "error_response",
    "RequestLoggingMiddleware",
]
