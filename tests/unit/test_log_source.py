"""
Leaf Log Source Unit Tests
Tests for core/ledger/log_source.py

1. validate_leaf_log rejects gaps, reordering and repeated commitments
2. parse_leaf_log accepts a bare list or an {"events": [...]} object
3. JSON file and HTTP sources surface failures as LeafLogError
"""
import json
from datetime import timedelta
from types import SimpleNamespace

import pytest
import requests

from core.config.runtime import LedgerConfig
from core.http.client import HttpClient
from core.ledger.log_source import (
    HttpLeafLogSource,
    InMemoryLeafLog,
    JsonFileLeafLog,
    create_log_source,
    parse_leaf_log,
    validate_leaf_log,
)
from core.schemas.errors import ErrorCodes, LeafLogError

from fixtures.common import make_commitments, make_leaf_events, make_leaf_log_payload


LOG_URL = "https://indexer.example/leaves"


class FakeSession:
    """Stands in for requests.Session; replays queued responses or errors."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        status_code, body = outcome
        return SimpleNamespace(
            status_code=status_code,
            content=body if isinstance(body, bytes) else _encode(body),
            headers={"Content-Type": "application/json"},
            url=url,
            elapsed=timedelta(milliseconds=5),
        )

    def close(self):
        pass


def _encode(value) -> bytes:
    return json.dumps(value).encode()


def _http_source(outcomes, max_retries=2):
    session = FakeSession(outcomes)
    client = HttpClient(session=session, max_retries=max_retries, retry_delay=0)
    return HttpLeafLogSource(LOG_URL, client), session


class TestValidateLeafLog:
    """Tests for validate_leaf_log."""

    def test_valid_log(self):
        events = make_leaf_events(make_commitments(4))
        assert validate_leaf_log(events) == events

    def test_empty_log(self):
        assert validate_leaf_log([]) == []

    def test_gap(self):
        events = make_leaf_events(make_commitments(4))
        with pytest.raises(LeafLogError, match="gap") as exc_info:
            validate_leaf_log([events[0], events[2], events[3]])
        assert exc_info.value.details == {"position": 1, "leaf_index": 2}
        assert exc_info.value.retryable

    def test_must_start_at_zero(self):
        events = make_leaf_events(make_commitments(2))
        with pytest.raises(LeafLogError, match="gap"):
            validate_leaf_log(events[1:])

    def test_out_of_order(self):
        events = make_leaf_events(make_commitments(3))
        with pytest.raises(LeafLogError, match="out-of-order"):
            validate_leaf_log([events[0], events[1], events[1]])

    def test_repeated_commitment(self):
        commitment = make_commitments(1)[0]
        events = make_leaf_events([commitment, commitment])
        with pytest.raises(LeafLogError) as exc_info:
            validate_leaf_log(events)
        err = exc_info.value
        assert err.details["first_index"] == 0
        assert err.details["leaf_index"] == 1
        assert not err.retryable


class TestParseLeafLog:
    """Tests for parse_leaf_log."""

    def test_list_payload(self):
        commitments = make_commitments(2)
        events = parse_leaf_log(make_leaf_log_payload(commitments))
        assert [e.commitment for e in events] == commitments
        assert [e.leaf_index for e in events] == [0, 1]

    def test_events_object(self):
        payload = {"events": make_leaf_log_payload(make_commitments(2))}
        assert len(parse_leaf_log(payload)) == 2

    @pytest.mark.parametrize("payload", [None, "events", {"leaves": []}, 42])
    def test_wrong_shape(self, payload):
        with pytest.raises(LeafLogError, match="list of events"):
            parse_leaf_log(payload)

    def test_malformed_entry(self):
        with pytest.raises(LeafLogError, match="Malformed") as exc_info:
            parse_leaf_log([{"commitment": "0xzz", "leafIndex": 0}])
        assert exc_info.value.code == ErrorCodes.LEAF_LOG_INVALID


class TestInMemoryLeafLog:
    """Tests for InMemoryLeafLog."""

    def test_append_assigns_indices(self):
        log = InMemoryLeafLog()
        for commitment in make_commitments(3):
            log.append(commitment)
        assert len(log) == 3
        assert [e.leaf_index for e in log.fetch_validated()] == [0, 1, 2]

    def test_fetch_returns_copy(self):
        log = InMemoryLeafLog(make_leaf_events(make_commitments(1)))
        log.fetch().clear()
        assert len(log) == 1


class TestJsonFileLeafLog:
    """Tests for JsonFileLeafLog."""

    def test_write_then_fetch(self, tmp_path):
        events = make_leaf_events(make_commitments(3))
        source = JsonFileLeafLog(tmp_path / "logs" / "deposits.json")
        source.write(events)
        assert source.fetch_validated() == events

        raw = json.loads((tmp_path / "logs" / "deposits.json").read_text())
        assert "leafIndex" in raw[0]

    def test_missing_file(self, tmp_path):
        source = JsonFileLeafLog(tmp_path / "missing.json")
        with pytest.raises(LeafLogError) as exc_info:
            source.fetch()
        assert exc_info.value.code == ErrorCodes.LEAF_LOG_UNAVAILABLE

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(LeafLogError, match="not valid JSON"):
            JsonFileLeafLog(path).fetch()


class TestHttpLeafLogSource:
    """Tests for HttpLeafLogSource with a fake session."""

    def test_fetch(self):
        commitments = make_commitments(2)
        source, session = _http_source([(200, make_leaf_log_payload(commitments))])
        events = source.fetch_validated()
        assert [e.commitment for e in events] == commitments
        assert session.calls == 1

    def test_retries_transient_status(self):
        payload = {"events": make_leaf_log_payload(make_commitments(1))}
        source, session = _http_source([(503, {}), (200, payload)])
        assert len(source.fetch()) == 1
        assert session.calls == 2

    def test_retries_connection_error(self):
        payload = make_leaf_log_payload(make_commitments(1))
        source, session = _http_source([requests.ConnectionError("reset"), (200, payload)])
        assert len(source.fetch()) == 1
        assert session.calls == 2

    def test_exhausted_retries(self):
        source, session = _http_source([(502, {}), (502, {}), (502, {})])
        with pytest.raises(LeafLogError) as exc_info:
            source.fetch()
        err = exc_info.value
        assert err.code == ErrorCodes.LEAF_LOG_UNAVAILABLE
        assert err.details["status_code"] == 502
        assert err.retryable
        assert session.calls == 3

    def test_client_error_not_retried(self):
        source, session = _http_source([(404, {"detail": "missing"})])
        with pytest.raises(LeafLogError) as exc_info:
            source.fetch()
        assert exc_info.value.details["status_code"] == 404
        assert session.calls == 1

    def test_invalid_json_body(self):
        source, _ = _http_source([(200, b"<html>")])
        with pytest.raises(LeafLogError, match="not valid JSON") as exc_info:
            source.fetch()
        assert not exc_info.value.retryable

    def test_cancelled(self):
        source, session = _http_source([(200, [])])
        source.cancel()
        with pytest.raises(LeafLogError) as exc_info:
            source.fetch()
        assert exc_info.value.code == ErrorCodes.LEAF_LOG_UNAVAILABLE
        assert session.calls == 0


class TestCreateLogSource:
    """Tests for create_log_source."""

    def test_unset_is_memory(self):
        assert isinstance(create_log_source(LedgerConfig()), InMemoryLeafLog)

    def test_url_is_http(self):
        source = create_log_source(LedgerConfig(source=LOG_URL, timeout=5.0, max_retries=1))
        assert isinstance(source, HttpLeafLogSource)
        assert source.client.timeout == 5.0
        assert source.client.max_retries == 1

    def test_path_is_file(self, tmp_path):
        source = create_log_source(LedgerConfig(source=str(tmp_path / "d.json")))
        assert isinstance(source, JsonFileLeafLog)
        assert source.path == tmp_path / "d.json"
