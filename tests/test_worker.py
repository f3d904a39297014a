"""Unit tests for job dispatch, retry backoff and dead-lettering."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from coach_workers.config import Config
from coach_workers.metrics import get_metrics
from coach_workers.registry import _registry, register
from coach_workers.worker import Worker


class _FakeTransaction:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


@pytest.fixture(autouse=True)
def _clean_registry():
    snapshot = dict(_registry)
    yield
    _registry.clear()
    _registry.update(snapshot)


@pytest.fixture
def worker():
    return Worker(Config(database_url="postgresql://x", listen_database_url="postgresql://x"))


@pytest.fixture
def job_conn(fake_conn_factory):
    conn = fake_conn_factory()
    conn.transaction = MagicMock(return_value=_FakeTransaction())
    conn.execute = AsyncMock()
    conn.commit = AsyncMock()
    return conn


def _job(job_type, attempt=1, max_retries=3, payload=None):
    return {
        "id": 7,
        "job_type": job_type,
        "payload": payload,
        "attempt": attempt,
        "max_retries": max_retries,
    }


@pytest.mark.asyncio
async def test_completed_job_marks_row(worker, job_conn):
    handler = AsyncMock()
    register("test.ok")(handler)

    await worker.process_job(job_conn, _job("test.ok", payload={"client_id": "c-1"}))

    handler.assert_awaited_once_with(job_conn, {"client_id": "c-1"})
    query, params = job_conn.execute.await_args.args
    assert "status = 'completed'" in query
    assert params == (7,)
    assert get_metrics()["handlers"]["test.ok"]["successes"] >= 1


@pytest.mark.asyncio
async def test_null_payload_becomes_empty_dict(worker, job_conn):
    handler = AsyncMock()
    register("test.null_payload")(handler)

    await worker.process_job(job_conn, _job("test.null_payload"))

    handler.assert_awaited_once_with(job_conn, {})


@pytest.mark.asyncio
async def test_unknown_job_type_is_dead(worker, job_conn):
    await worker.process_job(job_conn, _job("test.unregistered"))

    query, params = job_conn.fake_cursor.executed[-1]
    assert "status = 'dead'" in query
    assert params == ("No handler for job_type=test.unregistered", 7)
    job_conn.commit.assert_awaited()


@pytest.mark.asyncio
async def test_failure_schedules_retry_with_backoff(worker, job_conn):
    register("test.flaky")(AsyncMock(side_effect=ValueError("boom")))

    await worker.process_job(job_conn, _job("test.flaky", attempt=2))

    query, params = job_conn.fake_cursor.executed[-1]
    assert "status = 'pending'" in query
    assert params == ("boom", 4.0, 7)


@pytest.mark.asyncio
async def test_failure_at_max_retries_is_dead(worker, job_conn):
    register("test.broken")(AsyncMock(side_effect=ValueError("still broken")))
    dead_before = get_metrics()["jobs_dead"]

    await worker.process_job(job_conn, _job("test.broken", attempt=3, max_retries=3))

    query, params = job_conn.fake_cursor.executed[-1]
    assert "status = 'dead'" in query
    assert params == ("still broken", 7)
    assert get_metrics()["jobs_dead"] == dead_before + 1


@pytest.mark.asyncio
async def test_claim_only_health_jobs(worker, fake_conn_factory):
    conn = fake_conn_factory([[{"id": 1, "job_type": "health.batch_check"}]])

    jobs = await worker.claim_jobs(conn)

    query, params = conn.fake_cursor.executed[0]
    assert "job_type LIKE 'health.%%'" in query
    assert "FOR UPDATE SKIP LOCKED" in query
    assert params == (10,)
    assert jobs == [{"id": 1, "job_type": "health.batch_check"}]
