"""Tests for the outbound HTTP retry helper."""

import httpx
import pytest

from app.services import http_service
from app.services.http_service import (
    request_with_retries,
    request_with_retries_sync,
    retry_delay,
)

REQ = httpx.Request("POST", "https://api.resend.test/emails")


@pytest.mark.asyncio
async def test_retries_retryable_status_then_succeeds():
    responses = [
        httpx.Response(429, request=REQ),
        httpx.Response(200, json={"id": "msg_1"}, request=REQ),
    ]
    calls = {"count": 0}

    async def request_fn():
        calls["count"] += 1
        return responses.pop(0)

    response = await request_with_retries(request_fn, max_attempts=3, base_delay=0, max_delay=0)

    assert calls["count"] == 2
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_non_retryable_status_returns_immediately():
    calls = {"count": 0}

    async def request_fn():
        calls["count"] += 1
        return httpx.Response(422, request=REQ)

    response = await request_with_retries(request_fn, max_attempts=3, base_delay=0, max_delay=0)

    assert calls["count"] == 1
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_last_retryable_response_is_returned():
    calls = {"count": 0}

    async def request_fn():
        calls["count"] += 1
        return httpx.Response(503, request=REQ)

    response = await request_with_retries(request_fn, max_attempts=3, base_delay=0, max_delay=0)

    assert calls["count"] == 3
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_transport_error_reraised_after_max_attempts():
    calls = {"count": 0}

    async def request_fn():
        calls["count"] += 1
        raise httpx.ConnectError("refused", request=REQ)

    with pytest.raises(httpx.RequestError):
        await request_with_retries(request_fn, max_attempts=2, base_delay=0, max_delay=0)

    assert calls["count"] == 2


@pytest.mark.asyncio
async def test_backoff_sleeps_between_attempts(monkeypatch):
    delays = []

    async def _sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(http_service.asyncio, "sleep", _sleep)
    responses = [httpx.Response(500, request=REQ), httpx.Response(200, request=REQ)]

    async def request_fn():
        return responses.pop(0)

    await request_with_retries(request_fn, max_attempts=2, base_delay=1.0, max_delay=4.0)

    assert len(delays) == 1
    assert 1.0 <= delays[0] <= 1.5


def test_retry_after_header_overrides_backoff():
    throttled = httpx.Response(429, headers={"Retry-After": "2"}, request=REQ)

    assert retry_delay(0, base_delay=0.5, max_delay=4.0, response=throttled) == 2.0


def test_retry_after_is_capped_and_ignored_when_not_numeric():
    long_wait = httpx.Response(503, headers={"Retry-After": "120"}, request=REQ)
    http_date = httpx.Response(
        503, headers={"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}, request=REQ
    )

    assert retry_delay(0, base_delay=0.5, max_delay=4.0, response=long_wait) == 4.0
    assert 0.5 <= retry_delay(0, base_delay=0.5, max_delay=4.0, response=http_date) <= 0.75


def test_sync_variant_retries_and_honours_retry_after(monkeypatch):
    delays = []
    monkeypatch.setattr(http_service.time, "sleep", delays.append)
    responses = [
        httpx.Response(503, headers={"Retry-After": "1"}, request=REQ),
        httpx.Response(200, request=REQ),
    ]

    response = request_with_retries_sync(lambda: responses.pop(0), label="accounts:update")

    assert response.status_code == 200
    assert delays == [1.0]


def test_sync_variant_single_attempt_returns_failure():
    calls = {"count": 0}

    def request_fn():
        calls["count"] += 1
        return httpx.Response(503, request=REQ)

    response = request_with_retries_sync(request_fn, max_attempts=1)

    assert calls["count"] == 1
    assert response.status_code == 503


def test_sync_variant_reraises_transport_error(monkeypatch):
    monkeypatch.setattr(http_service.time, "sleep", lambda delay: None)

    def request_fn():
        raise httpx.ReadTimeout("slow", request=REQ)

    with pytest.raises(httpx.ReadTimeout):
        request_with_retries_sync(request_fn, max_attempts=2)
