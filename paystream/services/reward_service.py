import math
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.clients.ledger_gateway import LedgerGateway
from paystream.core.config import RewardSettings
from paystream.models.creator_tokens import CreatorToken
from paystream.models.reward_mints import RewardMint
from paystream.models.video_access import VideoAccess
from paystream.models.videos import Video


def tokens_owed(total_watch_time: float, threshold_seconds: int) -> int:
    """Whole reward tokens earned by ``total_watch_time`` seconds."""
    if total_watch_time <= 0:
        return 0
    return int(math.floor(total_watch_time / threshold_seconds))


@dataclass
class CreatorProgress:
    creator: str
    mint: Optional[str]
    total_watch_time: float
    tokens_owed: int
    balance: int
    progress: float


class RewardAccrualEngine:
    """Turns a viewer's watch time on a creator's catalog into token mints.

    Only the positive difference between tokens owed and the on-chain balance
    is ever minted, so re-running with unchanged totals mints nothing.
    """

    def __init__(self, db: AsyncSession, ledger: LedgerGateway, settings: Optional[RewardSettings] = None):
        self.db = db
        self.ledger = ledger
        self.settings = settings or RewardSettings()

    @property
    def threshold_seconds(self) -> int:
        return self.settings.reward_threshold_seconds

    async def get_creator_token(self, creator: str) -> Optional[CreatorToken]:
        result = await self.db.execute(select(CreatorToken).where(CreatorToken.creator == creator))
        return result.scalar_one_or_none()

    async def total_watch_time(self, viewer_wallet: str, creator: str) -> float:
        result = await self.db.execute(
            select(func.coalesce(func.sum(VideoAccess.watch_time), 0))
            .join(Video, VideoAccess.video_id == Video.id)
            .where(
                Video.uploader == creator,
                VideoAccess.viewer_wallet == viewer_wallet,
            )
        )
        return float(result.scalar_one() or 0)

    async def accrue_and_mint(self, viewer_wallet: str, creator: str) -> int:
        token = await self.get_creator_token(creator)
        if token is None:
            logger.debug(f"Creator {creator} has no reward token, skipping accrual for {viewer_wallet}")
            return 0

        total = await self.total_watch_time(viewer_wallet, creator)
        owed = tokens_owed(total, self.threshold_seconds)
        balance = await self.ledger.get_token_balance(token.mint, viewer_wallet)
        delta = owed - balance

        logger.debug(
            f"Reward check {viewer_wallet} / {creator}: watched {total}s, owed {owed}, held {balance}"
        )
        if delta <= 0:
            return 0

        authority = await self.ledger.derive_address(["mint_authority", creator])
        signature = await self.ledger.mint_to(
            mint=token.mint,
            mint_authority=authority.address,
            creator=creator,
            recipient=viewer_wallet,
            amount=delta,
        )

        self.db.add(
            RewardMint(
                viewer_wallet=viewer_wallet,
                creator=creator,
                mint=token.mint,
                amount=delta,
                tokens_owed=owed,
                signature=signature,
            )
        )
        await self.db.commit()

        logger.info(f"Minted {delta} {creator} tokens to {viewer_wallet}: {signature}")
        return delta

    async def viewer_progress(self, viewer_wallet: str) -> List[CreatorProgress]:
        result = await self.db.execute(
            select(Video.uploader, func.coalesce(func.sum(VideoAccess.watch_time), 0))
            .join(Video, VideoAccess.video_id == Video.id)
            .where(VideoAccess.viewer_wallet == viewer_wallet)
            .group_by(Video.uploader)
            .order_by(Video.uploader)
        )
        totals = [(creator, float(total or 0)) for creator, total in result.all()]
        if not totals:
            return []

        tokens = await self.db.execute(
            select(CreatorToken).where(CreatorToken.creator.in_([creator for creator, _ in totals]))
        )
        mints = {token.creator: token.mint for token in tokens.scalars().all()}

        progress = []
        for creator, total in totals:
            mint = mints.get(creator)
            balance = await self.ledger.get_token_balance(mint, viewer_wallet) if mint else 0
            progress.append(
                CreatorProgress(
                    creator=creator,
                    mint=mint,
                    total_watch_time=total,
                    tokens_owed=tokens_owed(total, self.threshold_seconds),
                    balance=balance,
                    progress=(total % self.threshold_seconds) / self.threshold_seconds,
                )
            )
        return progress
