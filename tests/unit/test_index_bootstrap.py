"""
Tests for the index bootstrap component.

- ping, create-if-missing, retry with exponential backoff
- exhaustion ends DEGRADED instead of raising
- readiness state follows the outcome
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from identity_search.components.index_bootstrap import (
    IDENTITY_INDEX_MAPPINGS,
    BootstrapStatus,
    EnsureReadyInput,
    IndexReadiness,
    IndexState,
    backoff_delay,
    build_index_settings,
    run_ensure_ready,
)
from tests.fakes import FIXED_NOW, FakeIndex, MockTimePort, RecordingSleeper


@pytest.fixture
def readiness() -> IndexReadiness:
    return IndexReadiness()


# --- Backoff ---


class TestBackoffDelay:
    def test_doubles_from_base(self):
        assert [backoff_delay(n, 1.0, 30.0) for n in range(1, 5)] == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max(self):
        assert backoff_delay(10, 1.0, 30.0) == 30.0

    def test_non_decreasing(self):
        delays = [backoff_delay(n, 0.5, 10.0) for n in range(1, 12)]
        assert delays == sorted(delays)

    def test_attempt_zero_has_no_delay(self):
        assert backoff_delay(0, 1.0, 30.0) == 0.0


# --- Ensure ready ---


class TestEnsureReady:
    def test_creates_missing_index(self, readiness):
        index = FakeIndex()
        sleeper = RecordingSleeper()

        result = run_ensure_ready(EnsureReadyInput(), index, readiness, sleeper)

        assert result.status is BootstrapStatus.SUCCESS
        assert result.success is True
        assert result.attempts == 1
        assert result.index_created is True
        assert index.create_calls == 1
        assert index.mappings == IDENTITY_INDEX_MAPPINGS
        assert sleeper.delays == []
        assert readiness.state is IndexState.READY

    def test_existing_index_is_left_alone(self, readiness):
        index = FakeIndex()
        index.exists = True

        result = run_ensure_ready(EnsureReadyInput(), index, readiness, RecordingSleeper())

        assert result.success is True
        assert result.index_created is False
        assert index.create_calls == 0

    def test_recovers_after_transient_failures(self, readiness):
        """Two refused pings, then the service answers: one creation, success."""
        index = FakeIndex()
        index.ping_failures = 2
        sleeper = RecordingSleeper()

        result = run_ensure_ready(
            EnsureReadyInput(max_attempts=5, base_delay_seconds=1.0, max_delay_seconds=30.0),
            index,
            readiness,
            sleeper,
        )

        assert result.success is True
        assert result.attempts == 3
        assert index.create_calls == 1
        assert sleeper.delays == [1.0, 2.0]
        assert readiness.is_ready()

    def test_exhaustion_degrades_without_raising(self, readiness):
        index = FakeIndex()
        index.available = False
        sleeper = RecordingSleeper()
        time = MockTimePort()

        result = run_ensure_ready(
            EnsureReadyInput(max_attempts=4, base_delay_seconds=1.0, max_delay_seconds=3.0),
            index,
            readiness,
            sleeper,
            time,
        )

        assert result.status is BootstrapStatus.DEGRADED
        assert result.success is False
        assert result.attempts == 4
        assert result.error
        # No sleep after the final attempt; delays are capped.
        assert sleeper.delays == [1.0, 2.0, 3.0]
        assert index.create_calls == 0

        snapshot = readiness.snapshot()
        assert snapshot.state is IndexState.DEGRADED
        assert snapshot.last_error == result.error
        assert snapshot.last_attempt_at == FIXED_NOW

    def test_stop_request_ends_retries(self, readiness):
        index = FakeIndex()
        index.available = False
        sleeper = RecordingSleeper()

        result = run_ensure_ready(
            EnsureReadyInput(max_attempts=5),
            index,
            readiness,
            sleeper,
            should_stop=lambda: len(sleeper.delays) >= 1,
        )

        assert result.status is BootstrapStatus.DEGRADED
        assert result.attempts == 1
        assert result.error == "Bootstrap cancelled"
        assert sleeper.delays == [1.0]
        assert readiness.state is IndexState.UNKNOWN

    def test_exception_text_is_reported(self, readiness):
        index = MagicMock()
        index.index_name = "lha_users"
        index.ping.side_effect = ConnectionError("connection refused")

        result = run_ensure_ready(
            EnsureReadyInput(max_attempts=1), index, readiness, RecordingSleeper()
        )

        assert result.status is BootstrapStatus.DEGRADED
        assert result.error == "connection refused"

    def test_create_failure_counts_as_failed_attempt(self, readiness):
        index = MagicMock()
        index.index_name = "lha_users"
        index.ping.return_value = True
        index.index_exists.return_value = False
        index.create_index.side_effect = [RuntimeError("cluster_block_exception"), True]

        result = run_ensure_ready(
            EnsureReadyInput(max_attempts=3, base_delay_seconds=0.5),
            index,
            readiness,
            RecordingSleeper(),
        )

        assert result.success is True
        assert result.attempts == 2
        assert result.index_created is True

    def test_degraded_index_can_recover_later(self, readiness):
        index = FakeIndex()
        index.available = False
        run_ensure_ready(EnsureReadyInput(max_attempts=1), index, readiness, RecordingSleeper())
        assert readiness.state is IndexState.DEGRADED

        index.available = True
        result = run_ensure_ready(
            EnsureReadyInput(max_attempts=1), index, readiness, RecordingSleeper()
        )

        assert result.success is True
        assert readiness.is_ready()
        assert readiness.snapshot().last_error is None


def test_settings_carry_replica_count():
    settings = build_index_settings(2)
    assert settings["number_of_replicas"] == 2
    assert settings["number_of_shards"] == 1


def test_mapping_uses_keyword_filters():
    props = IDENTITY_INDEX_MAPPINGS["properties"]
    assert props["role"]["type"] == "keyword"
    assert props["isActive"]["type"] == "boolean"
    assert props["emailVerified"]["type"] == "boolean"
    assert props["updatedAt"]["type"] == "date"
    assert props["email"]["fields"]["keyword"]["type"] == "keyword"
