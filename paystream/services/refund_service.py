from dataclasses import dataclass
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.models.video_access import VideoAccess
from paystream.services.user_service import UserService

REFUND_BATCH_SIZE = 500


@dataclass
class RefundSummary:
    refunded: int = 0
    total: int = 0

    def as_dict(self) -> dict:
        return {"refunded": self.refunded, "total": self.total}


class RefundCoordinator:
    """Credits every payer of a taken-down video with what they paid.

    Bookkeeping only: access records are kept and nothing moves on-chain.
    Each access row is settled at most once through its ``refunded`` flag,
    so the coordinator can be re-run after a partial failure.
    """

    def __init__(self, db: AsyncSession, batch_size: int = REFUND_BATCH_SIZE):
        self.db = db
        self.users = UserService(db)
        self.batch_size = batch_size

    async def process_refunds(self, video_id: UUID) -> RefundSummary:
        summary = RefundSummary()
        last_id = None

        while True:
            stmt = (
                select(
                    VideoAccess.id,
                    VideoAccess.viewer_wallet,
                    VideoAccess.tokens_paid,
                    VideoAccess.refunded,
                )
                .where(VideoAccess.video_id == video_id)
                .order_by(VideoAccess.id)
                .limit(self.batch_size)
            )
            if last_id is not None:
                stmt = stmt.where(VideoAccess.id > last_id)

            rows = (await self.db.execute(stmt)).all()
            if not rows:
                break

            for access_id, viewer_wallet, tokens_paid, refunded in rows:
                summary.total += 1
                if refunded:
                    summary.refunded += 1
                    continue
                if await self._refund_one(access_id, viewer_wallet, tokens_paid):
                    summary.refunded += 1

            last_id = rows[-1][0]

        logger.info(f"Refunds for video {video_id}: {summary.refunded}/{summary.total} settled")
        return summary

    async def _refund_one(self, access_id: UUID, viewer_wallet: str, tokens_paid: float) -> bool:
        try:
            result = await self.db.execute(
                update(VideoAccess)
                .where(VideoAccess.id == access_id, VideoAccess.refunded.is_(False))
                .values(refunded=True, refunded_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                await self.users.increment_counters(viewer_wallet, tokens_refunded=tokens_paid)
            await self.db.commit()
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Refund of access {access_id} for {viewer_wallet} failed: {e}")
            return False
