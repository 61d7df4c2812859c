from .errors import register_exception_handlers
from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "register_exception_handlers"]
