from .operator_routes import router as operator_router
from .health_routes import router as health_router
from .errors import register_exception_handlers

__all__ = ["operator_router", "health_router", "register_exception_handlers"]
