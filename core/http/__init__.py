"""
HTTP Client Module

requests-based HTTP client with receipt recording, used by the ledger
JSON-RPC gateway.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
