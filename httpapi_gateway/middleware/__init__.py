"""
Lambda-native middleware.
"""

from httpapi_gateway.middleware.base import FunctionMiddleware, Middleware
from httpapi_gateway.middleware.cors import CORSMiddleware
from httpapi_gateway.middleware.errors import ServerErrorMiddleware
from httpapi_gateway.middleware.exceptions import ExceptionMiddleware

__all__ = [
    "FunctionMiddleware",
    "Middleware",
    "CORSMiddleware",
    "ServerErrorMiddleware",
    "ExceptionMiddleware",
]
