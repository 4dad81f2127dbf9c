"""
Leaf Log Sources
Where the indexer reads the ordered deposit log from.

Every source returns the full log as LeafEvent records. validate_leaf_log()
is the gate between a source and reconstruction: the log must start at
leaf 0, be strictly ordered by leaf index with no gaps, and carry no
repeated commitment. Reconstructing from a log that fails any of these
would silently produce a root no accumulator ever emitted.

Payload Format (JSON file and HTTP):
    [{"commitment": "0x..", "leafIndex": 0, "timestamp": 1700000000}, ...]
or the same list under an "events" key.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from pydantic import ValidationError

from core.config.runtime import LedgerConfig
from core.crypto.hashing import field_to_hex
from core.http.client import HttpClient, HttpError
from core.schemas.errors import ErrorCodes, LeafLogError
from core.schemas.proof import LeafEvent


logger = logging.getLogger(__name__)


def validate_leaf_log(events: Sequence[LeafEvent]) -> list[LeafEvent]:
    """
    Check that a leaf log is complete and ordered.

    Returns:
        The events as a list, unchanged

    Raises:
        LeafLogError: On a gap, out-of-order entry or repeated commitment
    """
    seen: dict[int, int] = {}
    for position, event in enumerate(events):
        if event.leaf_index != position:
            kind = "gap" if event.leaf_index > position else "out-of-order entry"
            raise LeafLogError(
                f"Leaf log {kind} at position {position}: found leaf index {event.leaf_index}",
                details={"position": position, "leaf_index": event.leaf_index},
            )
        if event.commitment in seen:
            raise LeafLogError(
                f"Commitment repeated at leaves {seen[event.commitment]} and {position}",
                details={
                    "commitment": field_to_hex(event.commitment),
                    "first_index": seen[event.commitment],
                    "leaf_index": position,
                },
                retryable=False,
            )
        seen[event.commitment] = position
    return list(events)


def parse_leaf_log(payload: Any) -> list[LeafEvent]:
    """
    Parse a decoded JSON payload into LeafEvent records.

    Raises:
        LeafLogError: If the payload is not a list of events
    """
    if isinstance(payload, dict):
        payload = payload.get("events")
    if not isinstance(payload, list):
        raise LeafLogError(
            "Leaf log payload must be a list of events",
            retryable=False,
        )
    try:
        return [LeafEvent.model_validate(item) for item in payload]
    except ValidationError as e:
        raise LeafLogError(
            f"Malformed leaf log entry: {e.errors()[0].get('msg')}",
            details={"errors": len(e.errors())},
            retryable=False,
        ) from e


class LeafLogSource(ABC):
    """A readable, ordered deposit log."""

    name: str = "source"

    @abstractmethod
    def fetch(self) -> list[LeafEvent]:
        """Return every event from leaf 0 onward."""
        ...

    def fetch_validated(self) -> list[LeafEvent]:
        events = validate_leaf_log(self.fetch())
        logger.debug(f"Fetched {len(events)} leaf events from {self.name}")
        return events


class InMemoryLeafLog(LeafLogSource):
    """Leaf log held in memory; also the log a local pool appends to."""

    name = "memory"

    def __init__(self, events: Optional[Iterable[LeafEvent]] = None) -> None:
        self._events: list[LeafEvent] = list(events or [])

    def append(self, commitment: int, timestamp: int = 0) -> LeafEvent:
        event = LeafEvent(
            commitment=commitment,
            leaf_index=len(self._events),
            timestamp=timestamp,
        )
        self._events.append(event)
        return event

    def fetch(self) -> list[LeafEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)


class JsonFileLeafLog(LeafLogSource):
    """Leaf log stored as a JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.name = str(self.path)

    def fetch(self) -> list[LeafEvent]:
        try:
            with open(self.path) as f:
                payload = json.load(f)
        except FileNotFoundError as e:
            raise LeafLogError(
                f"Leaf log file not found: {self.path}",
                code=ErrorCodes.LEAF_LOG_UNAVAILABLE,
                retryable=False,
            ) from e
        except json.JSONDecodeError as e:
            raise LeafLogError(
                f"Leaf log file is not valid JSON: {e}",
                retryable=False,
            ) from e
        return parse_leaf_log(payload)

    def write(self, events: Sequence[LeafEvent]) -> None:
        """Overwrite the file with the given events."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = [event.model_dump(mode="json", by_alias=True) for event in events]
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)


class HttpLeafLogSource(LeafLogSource):
    """
    Leaf log served over HTTP.

    Transient failures are retried by the HttpClient; call cancel() from
    another thread to abandon a slow fetch.
    """

    def __init__(self, url: str, client: Optional[HttpClient] = None) -> None:
        self.url = url
        self.name = url
        self.client = client or HttpClient()

    @classmethod
    def from_config(cls, config: LedgerConfig) -> "HttpLeafLogSource":
        client = HttpClient(
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
        )
        return cls(config.source, client)

    def cancel(self) -> None:
        self.client.cancel()

    def fetch(self) -> list[LeafEvent]:
        try:
            response = self.client.get(self.url)
            response.raise_for_status()
            payload = response.json()
        except HttpError as e:
            raise LeafLogError(
                f"Leaf log unavailable at {self.url}: {e}",
                code=ErrorCodes.LEAF_LOG_UNAVAILABLE,
                details={"status_code": e.status_code},
                retryable=True,
            ) from e
        except ValueError as e:
            raise LeafLogError(
                f"Leaf log at {self.url} is not valid JSON",
                retryable=False,
            ) from e
        return parse_leaf_log(payload)


def create_log_source(config: LedgerConfig) -> LeafLogSource:
    """
    Pick a source from LedgerConfig.source: http(s) URL, file path, or
    an empty in-memory log when unset.
    """
    source = config.source
    if not source:
        return InMemoryLeafLog()
    if source.startswith(("http://", "https://")):
        return HttpLeafLogSource.from_config(config)
    return JsonFileLeafLog(source)


__all__ = [
    "LeafLogSource",
    "InMemoryLeafLog",
    "JsonFileLeafLog",
    "HttpLeafLogSource",
    "create_log_source",
    "parse_leaf_log",
    "validate_leaf_log",
]
