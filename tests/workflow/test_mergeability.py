"""Tests for the two-phase mergeability poller."""

import pytest

from mocks import FakeBackend

from rfc_svc.errors import ConsistencyError, MergeabilityUndeterminedError
from rfc_svc.workflow import resolve_mergeability


class SleepRecorder:
    def __init__(self):
        self.waits = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def backend():
    backend = FakeBackend()
    backend.seed("rfc-1", '{"actions": []}')
    return backend


@pytest.fixture
def request_handle(backend):
    return backend.requests["rfc-1"]


class TestResolveMergeability:

    @pytest.mark.asyncio
    async def test_clean_immediately(self, backend, request_handle, sleep):
        assert await resolve_mergeability(backend, request_handle, 3, 5.0, sleep) is True
        assert backend.count("get_combined_status") == 1
        assert backend.count("refresh_review_request") == 1
        assert sleep.waits == []

    @pytest.mark.asyncio
    async def test_pending_then_clean(self, backend, request_handle, sleep):
        backend.combined_statuses = ["pending", "success"]
        backend.mergeable_states = ["unknown", "clean"]

        assert await resolve_mergeability(backend, request_handle, 3, 5.0, sleep) is True
        assert backend.count("get_combined_status") == 2
        assert backend.count("refresh_review_request") == 2
        assert sleep.waits == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_checks_stay_pending_moves_on(self, backend, request_handle, sleep):
        backend.combined_statuses = ["pending"]

        assert await resolve_mergeability(backend, request_handle, 3, 1.0, sleep) is True
        assert backend.count("get_combined_status") == 3
        # No wait after the last attempt
        assert sleep.waits == [1.0, 1.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("state", ["dirty", "blocked", "behind", "unstable"])
    async def test_non_clean_state_not_mergeable(self, backend, request_handle, sleep, state):
        backend.mergeable_states = [state]
        assert await resolve_mergeability(backend, request_handle, 3, 1.0, sleep) is False

    @pytest.mark.asyncio
    async def test_unknown_after_retries_raises(self, backend, request_handle, sleep):
        backend.mergeable_states = ["unknown"]

        with pytest.raises(MergeabilityUndeterminedError):
            await resolve_mergeability(backend, request_handle, 3, 1.0, sleep)

        assert backend.count("refresh_review_request") == 3
        assert sleep.waits == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_missing_state_treated_as_unknown(self, backend, request_handle, sleep):
        backend.mergeable_states = [None]

        with pytest.raises(ConsistencyError):
            await resolve_mergeability(backend, request_handle, 2, 1.0, sleep)

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self, backend, request_handle, sleep):
        backend.combined_statuses = ["pending"]
        backend.mergeable_states = ["clean"]

        assert await resolve_mergeability(backend, request_handle, 1, 1.0, sleep) is True
        assert sleep.waits == []
