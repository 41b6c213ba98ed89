from abc import ABC, abstractmethod
from uuid import UUID

from arq import create_pool
from arq.connections import RedisSettings as ArqRedisSettings
from loguru import logger

from paystream.core.config import RedisSettings

REWARD_TASK_NAME = "accrue_rewards_task"


def get_arq_redis_settings() -> ArqRedisSettings:
    redis_config = RedisSettings()
    return ArqRedisSettings(
        host=redis_config.redis_host,
        port=redis_config.redis_port,
        password=redis_config.redis_password,
        database=redis_config.redis_database,
    )


async def get_arq_pool():
    return await create_pool(get_arq_redis_settings())


def reward_job_id(viewer_wallet: str, creator: str, access_id: UUID, watch_time: float) -> str:
    return f"reward:{viewer_wallet}:{creator}:{access_id}:{float(watch_time)}"


class RewardQueue(ABC):
    @abstractmethod
    async def enqueue(self, viewer_wallet: str, creator: str, access_id: UUID, watch_time: float) -> None:
        ...


class ArqRewardQueue(RewardQueue):
    """Schedules reward accrual on the arq worker without waiting for it."""

    async def enqueue(self, viewer_wallet: str, creator: str, access_id: UUID, watch_time: float) -> None:
        pool = None
        try:
            pool = await get_arq_pool()

            # Only triggers for the same stored watch time of one access collapse;
            # a newer report always gets its own job, even while an older one runs.
            job = await pool.enqueue_job(
                REWARD_TASK_NAME,
                viewer_wallet,
                creator,
                _job_id=reward_job_id(viewer_wallet, creator, access_id, watch_time),
            )
            if job is None:
                logger.debug(f"Reward accrual for {viewer_wallet} on {creator} at {watch_time}s already pending")
            else:
                logger.debug(f"Queued reward accrual {job.job_id}")

        except Exception as e:
            logger.exception(f"Failed to queue reward accrual for {viewer_wallet} on {creator}: {e}")
        finally:
            if pool:
                await pool.close()
