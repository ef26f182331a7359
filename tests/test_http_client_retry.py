from __future__ import annotations

import asyncio
import json
import time

import pytest
import requests

from steadfast.domain.errors import OperationTimeoutError, RetryExhaustedError
from steadfast.domain.models.retry_policy import RetryPolicy
from steadfast.infrastructure.http_client import (
    post_json_with_retries,
    resilient_request,
    retry_policy_from_dict,
)


def _make_response(status_code: int, payload: dict | None = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status_code
    r.url = "http://example.test"
    if payload is None:
        payload = {}
    r._content = json.dumps(payload).encode("utf-8")  # type: ignore[attr-defined]
    r.headers["Content-Type"] = "application/json"
    return r


POLICY = RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=30.0, use_jitter=False, timeout=5.0)


def test_post_json_retries_on_5xx(monkeypatch, sleeps):
    calls = {"n": 0}

    def fake_request(method, url, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            return _make_response(500, {"error": "boom"})
        return _make_response(200, {"ok": True})

    monkeypatch.setattr(requests, "request", fake_request)

    resp = asyncio.run(
        post_json_with_retries(
            "http://example.test",
            payload={"x": 1},
            headers={"Content-Type": "application/json"},
            policy=POLICY,
            sleep=sleeps,
        )
    )
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert calls["n"] == 2
    assert sleeps.calls == [1.0]


def test_post_json_does_not_retry_on_401(monkeypatch, sleeps):
    calls = {"n": 0}

    def fake_request(method, url, **kwargs):
        calls["n"] += 1
        return _make_response(401, {"error": "unauthorized"})

    monkeypatch.setattr(requests, "request", fake_request)

    with pytest.raises(requests.HTTPError) as exc_info:
        asyncio.run(
            post_json_with_retries(
                "http://example.test",
                payload={"x": 1},
                headers={"Content-Type": "application/json"},
                policy=POLICY,
                sleep=sleeps,
            )
        )
    assert calls["n"] == 1
    assert exc_info.value.attempts_made == 1
    assert sleeps.calls == []


def test_request_retries_network_errors_until_exhausted(monkeypatch, sleeps):
    calls = {"n": 0}

    def fake_request(method, url, **kwargs):
        calls["n"] += 1
        raise requests.exceptions.ConnectionError("connection reset")

    monkeypatch.setattr(requests, "request", fake_request)

    with pytest.raises(RetryExhaustedError) as exc_info:
        asyncio.run(resilient_request("GET", "http://example.test", policy=POLICY, sleep=sleeps))

    assert calls["n"] == 3
    assert exc_info.value.attempts_made == 3
    assert isinstance(exc_info.value.last_error, requests.exceptions.ConnectionError)
    assert sleeps.calls == [1.0, 2.0]


def test_request_timeout_defaults_to_policy_timeout(monkeypatch, sleeps):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(kwargs, method=method)
        return _make_response(200)

    monkeypatch.setattr(requests, "request", fake_request)

    asyncio.run(resilient_request("get", "http://example.test", policy=POLICY, sleep=sleeps))
    assert seen["timeout"] == 5.0
    assert seen["method"] == "get"

    asyncio.run(resilient_request("get", "http://example.test", policy=POLICY, sleep=sleeps, timeout=1))
    assert seen["timeout"] == 1


class TestRetryPolicyFromDict:
    def test_defaults(self):
        policy = retry_policy_from_dict({})
        assert policy.max_attempts == 4
        assert policy.base_delay == 1.0
        assert policy.timeout == 60.0

    def test_preferred_keys(self):
        policy = retry_policy_from_dict(
            {"max_attempts": 2, "base_delay": 0.5, "max_delay": 8, "use_jitter": False, "timeout": None}
        )
        assert policy.max_attempts == 2
        assert policy.base_delay == 0.5
        assert policy.max_delay == 8.0
        assert policy.use_jitter is False
        assert policy.timeout is None

    def test_legacy_aliases(self):
        policy = retry_policy_from_dict({"max_retries": 2, "retry_delay": 3})
        assert policy.max_attempts == 3
        assert policy.base_delay == 3.0

    def test_unrelated_keys_are_ignored(self):
        policy = retry_policy_from_dict({"model": "gpt-4o-mini", "fail_times": 2, "max_attempts": 2})
        assert policy.max_attempts == 2

    @pytest.mark.parametrize("value, expected", [("false", False), ("0", False), ("no", False), ("true", True)])
    def test_use_jitter_strings_are_parsed(self, value, expected):
        assert retry_policy_from_dict({"use_jitter": value}).use_jitter is expected

    @pytest.mark.parametrize(
        "config",
        [
            {"max_attempts": 0},
            {"base_delay": "soon"},
            {"base_delay": 2.0, "max_delay": 0.1},
            {"jitter_fraction": 4},
            {"timeout": -1},
            {"use_jitter": "sometimes"},
        ],
    )
    def test_invalid_values_are_rejected(self, config):
        with pytest.raises(ValueError, match="Invalid retry settings"):
            retry_policy_from_dict(config)


def test_request_timeout_replaces_runner_timeout(monkeypatch, sleeps):
    """A slow request bounded by requests' own timeout is not abandoned mid-flight"""
    calls = {"n": 0}

    def slow_request(method, url, **kwargs):
        calls["n"] += 1
        time.sleep(0.2)
        return _make_response(200, {"ok": True})

    monkeypatch.setattr(requests, "request", slow_request)
    policy = RetryPolicy(max_attempts=2, base_delay=1.0, use_jitter=False, timeout=0.05)

    resp = asyncio.run(resilient_request("GET", "http://example.test", policy=policy, sleep=sleeps, timeout=5))

    assert resp.status_code == 200
    assert calls["n"] == 1
    assert sleeps.calls == []


def test_runner_timeout_applies_without_request_timeout(monkeypatch, sleeps):
    def slow_request(method, url, **kwargs):
        time.sleep(0.2)
        return _make_response(200)

    monkeypatch.setattr(requests, "request", slow_request)
    policy = RetryPolicy(max_attempts=1, use_jitter=False, timeout=0.05)

    with pytest.raises(RetryExhaustedError) as exc_info:
        asyncio.run(resilient_request("GET", "http://example.test", policy=policy, sleep=sleeps, timeout=None))
    assert isinstance(exc_info.value.last_error, OperationTimeoutError)
