"""
HTTP Client Module

requests-based client with bounded retries and cancellation.
"""

from .client import HttpClient, HttpError, HttpResponse, RequestCancelled

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "RequestCancelled",
]
