from typing import Any, Dict

from loguru import logger

from paystream.clients.ledger_gateway import HttpLedgerGateway
from paystream.core.config import LedgerSettings
from paystream.db.database import get_async_sessionmaker
from paystream.services.reward_service import RewardAccrualEngine


async def accrue_rewards_task(
    ctx: Dict[str, Any],
    viewer_wallet: str,
    creator: str,
) -> int:
    ledger = ctx.get("ledger")
    owns_ledger = ledger is None
    if owns_ledger:
        ledger = HttpLedgerGateway(LedgerSettings())

    sessionmaker = ctx.get("sessionmaker") or get_async_sessionmaker()

    try:
        async with sessionmaker() as session:
            engine = RewardAccrualEngine(session, ledger)
            minted = await engine.accrue_and_mint(viewer_wallet, creator)

            logger.info(f"Reward accrual for {viewer_wallet} on {creator}: minted {minted}")

            return minted

    except Exception as e:
        logger.exception(f"Reward accrual failed for {viewer_wallet} on {creator}: {e}")
        raise
    finally:
        if owns_ledger:
            await ledger.close()
