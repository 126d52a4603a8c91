"""
API Middleware - exception to JSON response mapping
"""

from api.middleware.error_handler import DomainError, register_exception_handlers

__all__ = ["DomainError", "register_exception_handlers"]
