from dataclasses import dataclass
from typing import List, Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.core.config import RewardSettings
from paystream.core.exceptions import Conflict, NotFound, PaymentRequired
from paystream.models.video_access import VideoAccess
from paystream.models.videos import Video
from paystream.services.user_service import UserService


@dataclass
class AccessCheck:
    has_access: bool
    reason: str
    price: float
    is_uploader: bool = False
    access: Optional[VideoAccess] = None


@dataclass
class WatchTimeUpdate:
    access: VideoAccess
    creator: str


class AccessLedger:
    def __init__(self, db: AsyncSession, reward_settings: Optional[RewardSettings] = None):
        self.db = db
        self.users = UserService(db)
        self.reward_settings = reward_settings or RewardSettings()

    async def get_video(self, video_id: UUID) -> Video:
        video = await self.db.get(Video, video_id)
        if video is None:
            raise NotFound("Video not found")
        return video

    async def find_access(self, video_id: UUID, viewer_wallet: str) -> Optional[VideoAccess]:
        result = await self.db.execute(
            select(VideoAccess).where(
                VideoAccess.video_id == video_id,
                VideoAccess.viewer_wallet == viewer_wallet,
            )
        )
        return result.scalar_one_or_none()

    async def record_payment(
        self,
        video_id: UUID,
        viewer_wallet: str,
        tokens_paid: float,
        transaction_signature: str,
        video_pubkey: str,
        access_pubkey: str,
    ) -> VideoAccess:
        video = await self.get_video(video_id)
        uploader = video.uploader

        existing = await self.find_access(video_id, viewer_wallet)
        if existing:
            logger.warning(f"Payment for existing access: video {video_id}, viewer {viewer_wallet}")
            raise Conflict("User already has access to this video", record=existing)

        access = VideoAccess(
            video_id=video_id,
            viewer_wallet=viewer_wallet,
            tokens_paid=tokens_paid,
            transaction_signature=transaction_signature,
            video_pubkey=video_pubkey,
            access_pubkey=access_pubkey,
        )
        self.db.add(access)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise await self._payment_conflict(video_id, viewer_wallet, transaction_signature)

        await self.db.refresh(access)
        logger.info(f"Access granted: video {video_id} to {viewer_wallet} for {tokens_paid}")

        if not await self._record_payment_stats(viewer_wallet, uploader, tokens_paid):
            await self.db.refresh(access)
        return access

    async def _payment_conflict(self, video_id: UUID, viewer_wallet: str, transaction_signature: str) -> Conflict:
        result = await self.db.execute(
            select(VideoAccess).where(
                or_(
                    (VideoAccess.video_id == video_id) & (VideoAccess.viewer_wallet == viewer_wallet),
                    VideoAccess.transaction_signature == transaction_signature,
                )
            )
        )
        existing = result.scalars().first()
        if existing is not None and existing.transaction_signature == transaction_signature \
                and not (existing.video_id == video_id and existing.viewer_wallet == viewer_wallet):
            logger.warning(f"Transaction {transaction_signature} already recorded for another access")
            return Conflict("Transaction signature already recorded", record=existing)
        logger.warning(f"Concurrent payment for video {video_id}, viewer {viewer_wallet}")
        return Conflict("User already has access to this video", record=existing)

    async def _record_payment_stats(self, viewer_wallet: str, uploader: str, tokens_paid: float) -> bool:
        # The access grant is already committed; counters are best-effort.
        try:
            await self.users.increment_counters(viewer_wallet, videos_watched=1, tokens_spent=tokens_paid)
            await self.users.increment_counters(uploader, tokens_earned=tokens_paid)
            await self.db.commit()
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update payment stats for {viewer_wallet} -> {uploader}: {e}")
            return False

    async def verify_access(self, video_id: UUID, viewer_wallet: str) -> AccessCheck:
        video = await self.get_video(video_id)

        if video.uploader == viewer_wallet:
            logger.info(f"Access granted to uploader {viewer_wallet} for video {video_id}")
            return AccessCheck(has_access=True, reason="uploader", price=video.price, is_uploader=True)

        access = await self.find_access(video_id, viewer_wallet)
        if access is None:
            logger.info(f"No access record for video {video_id}, viewer {viewer_wallet}: payment needed")
            return AccessCheck(has_access=False, reason="payment_required", price=video.price)

        return AccessCheck(has_access=True, reason="paid", price=video.price, access=access)

    async def require_access(self, video_id: UUID, viewer_wallet: str) -> AccessCheck:
        check = await self.verify_access(video_id, viewer_wallet)
        if not check.has_access:
            raise PaymentRequired(
                price=check.price,
                message="You must pay to access this video before interacting with it",
            )
        return check

    async def update_watch_time(
        self,
        access_id: UUID,
        watch_time: Optional[float] = None,
        completed: Optional[bool] = None,
    ) -> WatchTimeUpdate:
        result = await self.db.execute(
            select(VideoAccess, Video.uploader, Video.duration)
            .join(Video, VideoAccess.video_id == Video.id)
            .where(VideoAccess.id == access_id)
        )
        row = result.first()
        if row is None:
            raise NotFound("Access record not found")
        access, uploader, duration = row

        values = {}
        if watch_time is not None:
            # Stale client reports never lower stored progress.
            values["watch_time"] = case(
                (VideoAccess.watch_time < watch_time, watch_time),
                else_=VideoAccess.watch_time,
            )
        finished = bool(completed)
        if watch_time is not None and duration and watch_time >= duration * self.reward_settings.completion_ratio:
            finished = True
        if finished:
            values["completed"] = True

        if values:
            await self.db.execute(
                update(VideoAccess)
                .where(VideoAccess.id == access_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            await self.db.refresh(access)

        return WatchTimeUpdate(access=access, creator=uploader)

    async def payment_info(self, video_id: UUID) -> Video:
        return await self.get_video(video_id)

    async def list_purchases(self, viewer_wallet: str, page: int = 1, limit: int = 10) -> Tuple[List[Tuple[VideoAccess, Video]], int]:
        total = (
            await self.db.execute(
                select(func.count(VideoAccess.id)).where(VideoAccess.viewer_wallet == viewer_wallet)
            )
        ).scalar_one()

        result = await self.db.execute(
            select(VideoAccess, Video)
            .join(Video, VideoAccess.video_id == Video.id)
            .where(VideoAccess.viewer_wallet == viewer_wallet)
            .order_by(VideoAccess.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return [(access, video) for access, video in result.all()], int(total or 0)
