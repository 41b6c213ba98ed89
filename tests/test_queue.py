import uuid

import pytest

from paystream.tasks import queue
from paystream.tasks.queue import REWARD_TASK_NAME, ArqRewardQueue, RewardQueue, reward_job_id
from tests.conftest import CREATOR, VIEWER_A

ACCESS_ID = uuid.UUID("3f2b8c1e-0a4d-4e6f-9b7a-1c2d3e4f5a6b")
OTHER_ACCESS_ID = uuid.UUID("7a6b5c4d-3e2f-4a1b-8c9d-0e1f2a3b4c5d")


class FakeJob:
    def __init__(self, job_id):
        self.job_id = job_id


class FakePool:
    """Keeps job keys until told a job finished, like arq does."""

    def __init__(self):
        self.enqueued = []
        self.closed = False
        self.pending = set()

    async def enqueue_job(self, function, *args, _job_id=None):
        self.enqueued.append((function, args, _job_id))
        if _job_id in self.pending:
            return None
        self.pending.add(_job_id)
        return FakeJob(_job_id)

    async def close(self):
        self.closed = True


@pytest.fixture
def pool(monkeypatch):
    pool = FakePool()

    async def fake_get_arq_pool():
        return pool

    monkeypatch.setattr(queue, "get_arq_pool", fake_get_arq_pool)
    return pool


async def test_identical_triggers_collapse_into_one_job(pool):
    await ArqRewardQueue().enqueue(VIEWER_A, CREATOR, ACCESS_ID, 40)
    await ArqRewardQueue().enqueue(VIEWER_A, CREATOR, ACCESS_ID, 40)

    job_id = reward_job_id(VIEWER_A, CREATOR, ACCESS_ID, 40)
    assert pool.enqueued == [
        (REWARD_TASK_NAME, (VIEWER_A, CREATOR), job_id),
        (REWARD_TASK_NAME, (VIEWER_A, CREATOR), job_id),
    ]
    assert pool.pending == {job_id}
    assert pool.closed is True


async def test_newer_watch_time_is_queued_while_older_job_is_pending(pool):
    await ArqRewardQueue().enqueue(VIEWER_A, CREATOR, ACCESS_ID, 40)
    await ArqRewardQueue().enqueue(VIEWER_A, CREATOR, ACCESS_ID, 55.5)

    assert pool.pending == {
        reward_job_id(VIEWER_A, CREATOR, ACCESS_ID, 40),
        reward_job_id(VIEWER_A, CREATOR, ACCESS_ID, 55.5),
    }


async def test_same_watch_time_on_another_video_gets_its_own_job(pool):
    await ArqRewardQueue().enqueue(VIEWER_A, CREATOR, ACCESS_ID, 40)
    await ArqRewardQueue().enqueue(VIEWER_A, CREATOR, OTHER_ACCESS_ID, 40)

    assert len(pool.pending) == 2


def test_job_id_names_the_pair_and_state():
    assert reward_job_id(VIEWER_A, CREATOR, ACCESS_ID, 30) == f"reward:{VIEWER_A}:{CREATOR}:{ACCESS_ID}:30.0"


async def test_enqueue_failures_are_swallowed(monkeypatch):
    async def broken_pool():
        raise ConnectionError("redis is down")

    monkeypatch.setattr(queue, "get_arq_pool", broken_pool)

    await ArqRewardQueue().enqueue(VIEWER_A, CREATOR, ACCESS_ID, 10)


def test_queue_without_enqueue_cannot_be_built():
    class Incomplete(RewardQueue):
        pass

    with pytest.raises(TypeError):
        Incomplete()


def test_close_watch_times_get_distinct_job_ids():
    assert reward_job_id(VIEWER_A, CREATOR, ACCESS_ID, 123456.7) != reward_job_id(
        VIEWER_A, CREATOR, ACCESS_ID, 123456.8
    )
