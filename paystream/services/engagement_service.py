from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from paystream.core.exceptions import Conflict, NotFound, ValidationFailure
from paystream.models.interactions import Interaction, InteractionType, ShareTarget, VoteType
from paystream.models.videos import TakedownReason, Video
from paystream.services.refund_service import RefundCoordinator, RefundSummary
from paystream.utils.security import Authorizer, TrustedAddressAuthorizer

MAX_VOTE_ATTEMPTS = 3

COUNTER_COLUMNS = {
    VoteType.LIKE: "like_count",
    VoteType.DISLIKE: "dislike_count",
}


@dataclass
class InteractionState:
    liked: bool = False
    disliked: bool = False
    shared: bool = False
    shared_to: Optional[ShareTarget] = None
    share_count: int = 0

    @classmethod
    def of(cls, interaction: Optional[Interaction]) -> "InteractionState":
        if interaction is None:
            return cls()
        return cls(
            liked=interaction.vote == VoteType.LIKE,
            disliked=interaction.vote == VoteType.DISLIKE,
            shared=(interaction.share_count or 0) > 0,
            shared_to=interaction.shared_to,
            share_count=interaction.share_count or 0,
        )


@dataclass
class VideoCounts:
    like_count: int
    dislike_count: int
    share_count: int
    comment_count: int
    dislike_ratio: float
    is_active: bool

    @classmethod
    def of(cls, video: Video) -> "VideoCounts":
        return cls(
            like_count=video.like_count,
            dislike_count=video.dislike_count,
            share_count=video.share_count,
            comment_count=video.comment_count,
            dislike_ratio=video.dislike_ratio,
            is_active=video.is_active,
        )


@dataclass
class InteractionOutcome:
    interaction: InteractionState
    video: VideoCounts
    refunds: Optional[RefundSummary] = None


def clamped_shift(column, delta: int):
    shifted = column + delta
    return case((shifted < 0, 0), else_=shifted)


class EngagementAggregator:
    def __init__(
        self,
        db: AsyncSession,
        refunds: Optional[RefundCoordinator] = None,
        authorizer: Optional[Authorizer] = None,
    ):
        self.db = db
        self.refunds = refunds or RefundCoordinator(db)
        self.authorizer = authorizer or TrustedAddressAuthorizer()

    async def _get_video(self, video_id: UUID) -> Video:
        video = await self.db.get(Video, video_id, populate_existing=True)
        if video is None:
            raise NotFound("Video not found")
        return video

    async def apply_interaction(
        self,
        video_id: UUID,
        user_wallet: str,
        kind: InteractionType,
        shared_to: Optional[ShareTarget] = None,
    ) -> InteractionOutcome:
        kind = InteractionType(kind)
        if kind is InteractionType.SHARE and not shared_to:
            raise ValidationFailure("sharedTo field is required for share interactions")

        for attempt in range(1, MAX_VOTE_ATTEMPTS + 1):
            try:
                outcome, taken_down = await self._apply_once(video_id, user_wallet, kind, shared_to)
                break
            except (StaleDataError, IntegrityError) as e:
                await self.db.rollback()
                logger.warning(
                    f"Concurrent {kind.value} on video {video_id} by {user_wallet} "
                    f"(attempt {attempt}/{MAX_VOTE_ATTEMPTS}): {e}"
                )
        else:
            raise Conflict("Interaction was modified concurrently, please retry")

        if taken_down:
            logger.warning(f"Video {video_id} taken down: dislike ratio {outcome.video.dislike_ratio:.3f}")
            outcome.refunds = await self._refund_safely(video_id)
        return outcome

    async def _apply_once(self, video_id, user_wallet, kind, shared_to):
        video = await self._get_video(video_id)
        if not video.is_active:
            raise ValidationFailure("Cannot interact with an inactive video")

        result = await self.db.execute(
            select(Interaction)
            .where(Interaction.video_id == video_id, Interaction.user_wallet == user_wallet)
            .execution_options(populate_existing=True)
        )
        interaction = result.scalar_one_or_none()
        if interaction is None:
            interaction = Interaction(video_id=video_id, user_wallet=user_wallet, share_count=0)
            self.db.add(interaction)

        deltas = self._plan(interaction, kind, shared_to)
        await self.db.flush()

        await self._shift_counters(video_id, deltas)
        await self.db.refresh(video)
        taken_down = await self._evaluate_takedown(video)

        await self.db.commit()
        await self.db.refresh(video)

        outcome = InteractionOutcome(
            interaction=InteractionState.of(interaction),
            video=VideoCounts.of(video),
        )
        return outcome, taken_down

    @staticmethod
    def _plan(interaction: Interaction, kind: InteractionType, shared_to: Optional[ShareTarget]) -> Dict[str, int]:
        if kind is InteractionType.SHARE:
            interaction.shared_to = ShareTarget(shared_to)
            interaction.share_count = (interaction.share_count or 0) + 1
            return {"share_count": 1}

        vote = VoteType(kind.value)
        deltas: Dict[str, int] = {}
        if interaction.vote == vote:
            interaction.vote = None
            deltas[COUNTER_COLUMNS[vote]] = -1
        else:
            if interaction.vote is not None:
                deltas[COUNTER_COLUMNS[interaction.vote]] = -1
            interaction.vote = vote
            deltas[COUNTER_COLUMNS[vote]] = 1
        return deltas

    async def _shift_counters(self, video_id: UUID, deltas: Dict[str, int]) -> None:
        values = {
            name: clamped_shift(getattr(Video, name), delta)
            for name, delta in deltas.items()
        }
        await self.db.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    async def _evaluate_takedown(self, video: Video) -> bool:
        total = video.like_count + video.dislike_count
        if total == 0 or total < video.minimum_interactions:
            return False

        ratio = video.dislike_count / total
        await self.db.execute(
            update(Video)
            .where(Video.id == video.id)
            .values(dislike_ratio=ratio)
            .execution_options(synchronize_session=False)
        )
        if ratio < video.dislike_threshold:
            return False

        # Only the request that flips is_active runs the refunds.
        result = await self.db.execute(
            update(Video)
            .where(Video.id == video.id, Video.is_active.is_(True))
            .values(is_active=False, takedown_reason=TakedownReason.DISLIKE_RATIO)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _refund_safely(self, video_id: UUID) -> RefundSummary:
        try:
            return await self.refunds.process_refunds(video_id)
        except Exception as e:
            logger.exception(f"Refunds for video {video_id} failed: {e}")
            return RefundSummary(refunded=0, total=0)

    async def update_thresholds(
        self,
        video_id: UUID,
        caller: str,
        dislike_threshold: Optional[float] = None,
        minimum_interactions: Optional[int] = None,
    ) -> Video:
        video = await self._get_video(video_id)
        await self.authorizer.verify_caller(caller, video.uploader, "update threshold settings")

        if dislike_threshold is not None:
            if dislike_threshold < 0 or dislike_threshold > 1:
                raise ValidationFailure("Dislike threshold must be between 0 and 1")
            video.dislike_threshold = dislike_threshold

        if minimum_interactions is not None:
            if minimum_interactions < 0:
                raise ValidationFailure("Minimum interactions must be a positive number")
            video.minimum_interactions = minimum_interactions

        await self.db.commit()
        await self.db.refresh(video)
        logger.info(
            f"Thresholds for video {video_id}: ratio {video.dislike_threshold}, "
            f"minimum {video.minimum_interactions}"
        )
        return video

    async def stats(self, video_id: UUID) -> VideoCounts:
        return VideoCounts.of(await self._get_video(video_id))

    async def list_interactions(self, video_id: UUID, kind: Optional[InteractionType] = None) -> List[Interaction]:
        stmt = select(Interaction).where(Interaction.video_id == video_id)
        if kind is InteractionType.SHARE:
            stmt = stmt.where(Interaction.share_count > 0)
        elif kind is not None:
            stmt = stmt.where(Interaction.vote == VoteType(kind.value))

        result = await self.db.execute(stmt.order_by(Interaction.updated_at.desc()))
        return list(result.scalars().all())

    async def user_state(self, video_id: UUID, user_wallet: str) -> InteractionState:
        result = await self.db.execute(
            select(Interaction).where(
                Interaction.video_id == video_id,
                Interaction.user_wallet == user_wallet,
            )
        )
        return InteractionState.of(result.scalar_one_or_none())
