from typing import Any, Dict

from loguru import logger

from paystream.clients.ledger_gateway import HttpLedgerGateway
from paystream.core.config import LedgerSettings
from paystream.tasks.queue import get_arq_redis_settings
from paystream.tasks.reward_task import accrue_rewards_task


async def startup(ctx: Dict[str, Any]) -> None:
    ctx["ledger"] = HttpLedgerGateway(LedgerSettings())
    logger.info("Reward worker started")


async def shutdown(ctx: Dict[str, Any]) -> None:
    ledger = ctx.get("ledger")
    if ledger is not None:
        await ledger.close()
    logger.info("Reward worker stopped")


class WorkerSettings:
    functions = [accrue_rewards_task]

    on_startup = startup
    on_shutdown = shutdown

    # Job ids are reused per (viewer, creator) pair once a job finishes.
    keep_result = 0

    redis_settings = get_arq_redis_settings()
