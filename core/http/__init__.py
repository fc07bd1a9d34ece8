"""
HTTP Client Module

requests-backed client used by the oracle's remote collaborators.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
