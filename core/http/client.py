"""
HTTP Client

Small requests-based client used to fetch the deposit leaf log from a
remote indexer or chain gateway. Transient failures (connection errors,
timeouts, 5xx, 429) are retried with a fixed delay; a threading.Event
lets a caller cancel an in-flight retry loop.
"""

from __future__ import annotations

import json as jsonlib
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

import requests


logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass
class HttpResponse:
    """
    Response from an HTTP request.
    """
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""
    elapsed_ms: float = 0.0
    attempts: int = 1

    @property
    def ok(self) -> bool:
        """Check if request was successful (2xx status)."""
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return jsonlib.loads(self.content)

    def raise_for_status(self) -> None:
        """Raise HttpError if status is not 2xx."""
        if not self.ok:
            raise HttpError(
                f"HTTP {self.status_code} from {self.url}",
                status_code=self.status_code,
                response=self,
            )


class HttpError(Exception):
    """HTTP request error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[HttpResponse] = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.retryable = retryable


class RequestCancelled(HttpError):
    """Raised when the cancel event is set before or between attempts."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Request to {url} cancelled")


class HttpClient:
    """
    HTTP client with bounded retries.

    Usage:
        client = HttpClient(timeout=10.0, max_retries=3, retry_delay=0.5)

        response = client.get("https://indexer.example/leaves")
        response.raise_for_status()
        events = response.json()
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        default_headers: Optional[dict[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize HTTP client.

        Args:
            timeout: Per-attempt timeout in seconds
            max_retries: Retries after the first attempt (0 disables retrying)
            retry_delay: Seconds to wait between attempts
            default_headers: Headers to include in all requests
            cancel_event: When set, pending and future attempts are abandoned
            session: Pre-built requests session (tests inject a mock here)
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.default_headers = default_headers or {}
        self.cancel_event = cancel_event or threading.Event()
        self._session = session

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.default_headers)
        return self._session

    def cancel(self) -> None:
        """Abandon any in-flight retry loop."""
        self.cancel_event.set()

    def _attempt(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        params: Optional[dict[str, Any]],
        json: Optional[Any],
        timeout: float,
    ) -> HttpResponse:
        try:
            response = self._get_session().request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=json,
                timeout=timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise HttpError(str(e), retryable=True) from e
        except requests.RequestException as e:
            raise HttpError(str(e)) from e

        result = HttpResponse(
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
            url=str(response.url),
            elapsed_ms=response.elapsed.total_seconds() * 1000,
        )
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise HttpError(
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code,
                response=result,
                retryable=True,
            )
        return result

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """
        Make an HTTP request, retrying transient failures.

        Returns:
            HttpResponse for the first non-retryable outcome (which may
            still be a 4xx; call raise_for_status())

        Raises:
            RequestCancelled: If the cancel event is set
            HttpError: If every attempt fails or the failure is not retryable
        """
        effective_timeout = timeout or self.timeout
        request_headers = dict(self.default_headers)
        if headers:
            request_headers.update(headers)

        last_error: Optional[HttpError] = None
        for attempt in range(1, self.max_retries + 2):
            if self.cancel_event.is_set():
                raise RequestCancelled(url)
            try:
                result = self._attempt(
                    method, url, request_headers, params, json, effective_timeout
                )
                result.attempts = attempt
                return result
            except HttpError as e:
                if not e.retryable:
                    raise
                last_error = e
                logger.warning(
                    f"{method} {url} failed (attempt {attempt}/{self.max_retries + 1}): {e}"
                )
            if attempt <= self.max_retries and self.cancel_event.wait(self.retry_delay):
                raise RequestCancelled(url)

        assert last_error is not None
        raise last_error

    def get(
        self,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """Make a GET request."""
        return self.request("GET", url, headers=headers, params=params, timeout=timeout)

    def post(
        self,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        json: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """Make a POST request."""
        return self.request("POST", url, headers=headers, json=json, timeout=timeout)

    def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()
