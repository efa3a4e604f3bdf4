"""
Tests for utils.http retrying fetcher.

Test Coverage:
    - BackoffPolicy delay schedule
    - Success after N failures
    - Aggregate error after exhausting attempts
    - 403 classification
    - Transport errors retried, other errors propagated
"""

import httpx
import pytest

from tests.conftest import sequence_transport
from utils.errors import AntiBotRejection, RetryExhaustedError, UpstreamApiError
from utils.http import BackoffPolicy, fetch_with_retry, raise_for_status

URL = "https://api.test/resource"


def ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"ok": True})


def fail_500(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500)


def forbidden(request: httpx.Request) -> httpx.Response:
    return httpx.Response(403, json={"data": "looks fine but is not"})


def connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestBackoffPolicy:
    """Tests for BackoffPolicy schedule."""

    def test_delay_is_base_to_the_attempt_index(self):
        policy = BackoffPolicy(max_attempts=5)
        for i in range(1, 5):
            assert policy.delay_before(i) == 2 ** i

    def test_first_attempt_has_no_delay(self):
        assert BackoffPolicy().delay_before(0) == 0.0

    def test_delays_for_five_attempts(self):
        assert BackoffPolicy(max_attempts=5).delays() == [2, 4, 8, 16]

    def test_single_attempt_has_no_delays(self):
        assert BackoffPolicy(max_attempts=1).delays() == []

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            BackoffPolicy(max_attempts=0)


class TestFetchWithRetry:
    """Tests for fetch_with_retry()."""

    @pytest.mark.asyncio
    async def test_first_success_returns_without_sleeping(self, sleep):
        async with httpx.AsyncClient(transport=sequence_transport([ok])) as client:
            response = await fetch_with_retry(client, "GET", URL, sleep=sleep)

        assert response.status_code == 200
        assert sleep.delays == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures", [1, 2, 4])
    async def test_succeeds_after_n_failures(self, sleep, failures):
        transport = sequence_transport([fail_500] * failures + [ok])
        policy = BackoffPolicy(max_attempts=failures + 1)

        async with httpx.AsyncClient(transport=transport) as client:
            response = await fetch_with_retry(client, "GET", URL, policy=policy, sleep=sleep)

        assert response.json() == {"ok": True}
        assert sleep.delays == [2 ** i for i in range(1, failures + 1)]

    @pytest.mark.asyncio
    async def test_exhausted_attempts_raise_aggregate_error(self, sleep):
        transport = sequence_transport([fail_500] * 3)
        policy = BackoffPolicy(max_attempts=3)

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(RetryExhaustedError) as exc_info:
                await fetch_with_retry(client, "GET", URL, policy=policy, sleep=sleep)

        error = exc_info.value
        assert error.attempts == 3
        assert isinstance(error.last_error, UpstreamApiError)
        assert "500" in str(error)
        assert error.__cause__ is error.last_error
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_403_is_never_success(self, sleep):
        transport = sequence_transport([forbidden] * 2)
        policy = BackoffPolicy(max_attempts=2)

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(RetryExhaustedError) as exc_info:
                await fetch_with_retry(client, "GET", URL, policy=policy, sleep=sleep)

        assert isinstance(exc_info.value.last_error, AntiBotRejection)
        assert "anti-bot" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_403_is_retried_like_other_failures(self, sleep):
        transport = sequence_transport([forbidden, ok])
        policy = BackoffPolicy(max_attempts=2)

        async with httpx.AsyncClient(transport=transport) as client:
            response = await fetch_with_retry(client, "GET", URL, policy=policy, sleep=sleep)

        assert response.status_code == 200
        assert sleep.delays == [2.0]

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self, sleep):
        transport = sequence_transport([connect_error, connect_error, ok])
        policy = BackoffPolicy(max_attempts=3)

        async with httpx.AsyncClient(transport=transport) as client:
            response = await fetch_with_retry(client, "GET", URL, policy=policy, sleep=sleep)

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_cls", [httpx.DecodingError, httpx.TooManyRedirects])
    async def test_non_transport_request_errors_are_retried(self, sleep, error_cls):
        def request_error(request: httpx.Request) -> httpx.Response:
            raise error_cls("broken response", request=request)

        transport = sequence_transport([request_error, ok])
        policy = BackoffPolicy(max_attempts=2)

        async with httpx.AsyncClient(transport=transport) as client:
            response = await fetch_with_retry(client, "GET", URL, policy=policy, sleep=sleep)

        assert response.status_code == 200
        assert sleep.delays == [2.0]

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate_without_retry(self, sleep):
        def boom(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("boom")

        transport = sequence_transport([boom, ok])

        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(RuntimeError, match="boom"):
                await fetch_with_retry(client, "GET", URL, sleep=sleep)

        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_request_kwargs_pass_through(self, sleep):
        seen = []

        def capture(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=sequence_transport([capture])) as client:
            await fetch_with_retry(
                client, "POST", URL, sleep=sleep, headers={"x-test": "1"}, content=b"{}"
            )

        assert seen[0].method == "POST"
        assert seen[0].headers["x-test"] == "1"
        assert seen[0].content == b"{}"


class TestRaiseForStatus:
    """Tests for response classification."""

    def _response(self, status: int) -> httpx.Response:
        return httpx.Response(status, request=httpx.Request("GET", URL))

    def test_2xx_passes(self):
        raise_for_status(self._response(200))
        raise_for_status(self._response(204))

    def test_403_is_anti_bot(self):
        with pytest.raises(AntiBotRejection):
            raise_for_status(self._response(403))

    def test_other_status_is_generic_failure(self):
        with pytest.raises(UpstreamApiError) as exc_info:
            raise_for_status(self._response(502))

        assert not isinstance(exc_info.value, AntiBotRejection)
        assert exc_info.value.status_code == 502
