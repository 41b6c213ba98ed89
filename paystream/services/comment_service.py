from typing import List, Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.core.exceptions import Forbidden, NotFound, ValidationFailure
from paystream.models.comments import Comment
from paystream.models.videos import Video
from paystream.services.access_ledger import AccessLedger
from paystream.services.engagement_service import clamped_shift
from paystream.services.user_service import UserService
from paystream.utils.security import Authorizer, TrustedAddressAuthorizer


class CommentService:
    def __init__(self, db: AsyncSession, authorizer: Optional[Authorizer] = None):
        self.db = db
        self.access = AccessLedger(db)
        self.users = UserService(db)
        self.authorizer = authorizer or TrustedAddressAuthorizer()

    async def get_or_404(self, comment_id: UUID) -> Comment:
        comment = await self.db.get(Comment, comment_id, populate_existing=True)
        if comment is None:
            raise NotFound("Comment not found")
        return comment

    async def _shift_comment_count(self, video_id: UUID, delta: int) -> None:
        await self.db.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(comment_count=clamped_shift(Video.comment_count, delta))
            .execution_options(synchronize_session=False)
        )

    async def add_comment(
        self,
        video_id: UUID,
        user_wallet: str,
        content: str,
        parent_id: Optional[UUID] = None,
    ) -> Comment:
        if not content or not content.strip():
            raise ValidationFailure("Comment content is required")

        await self.access.require_access(video_id, user_wallet)
        video = await self.access.get_video(video_id)
        if not video.is_active:
            raise ValidationFailure("Cannot comment on an inactive video")

        if parent_id is not None:
            parent = await self.db.get(Comment, parent_id)
            if parent is None:
                raise NotFound("Parent comment not found")
            if parent.video_id != video_id:
                raise ValidationFailure("Parent comment does not belong to this video")
            if parent.parent_id is not None:
                # Threads stay flat: replies attach to the top-level comment.
                parent_id = parent.parent_id

        user = await self.users.get_by_wallet(user_wallet)
        comment = Comment(
            video_id=video_id,
            user_wallet=user_wallet,
            user_name=UserService.display_name(user, user_wallet),
            content=content.strip(),
            parent_id=parent_id,
        )
        self.db.add(comment)
        await self.db.flush()
        await self._shift_comment_count(video_id, 1)
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def list_comments(
        self,
        video_id: UUID,
        parent_id: Optional[UUID] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Comment], int]:
        conditions = [Comment.video_id == video_id, Comment.is_active.is_(True)]
        if parent_id is None:
            conditions.append(Comment.parent_id.is_(None))
        else:
            conditions.append(Comment.parent_id == parent_id)

        total = (await self.db.execute(select(func.count(Comment.id)).where(*conditions))).scalar_one()
        result = await self.db.execute(
            select(Comment)
            .where(*conditions)
            .order_by(Comment.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), int(total or 0)

    async def update_comment(self, comment_id: UUID, user_wallet: str, content: str) -> Comment:
        if not content or not content.strip():
            raise ValidationFailure("Comment content is required")

        comment = await self.get_or_404(comment_id)
        await self.authorizer.verify_caller(user_wallet, comment.user_wallet, "edit this comment")

        comment.content = content.strip()
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def delete_comment(self, comment_id: UUID, user_wallet: str) -> None:
        comment = await self.get_or_404(comment_id)
        video = await self.access.get_video(comment.video_id)

        try:
            await self.authorizer.verify_caller(user_wallet, comment.user_wallet, "delete this comment")
        except Forbidden:
            await self.authorizer.verify_caller(
                user_wallet,
                video.uploader,
                "delete comments you did not write on videos you do not own",
            )

        if not comment.is_active:
            return

        comment.is_active = False
        await self._shift_comment_count(comment.video_id, -1)
        await self.db.commit()
        logger.info(f"Comment {comment_id} removed by {user_wallet}")

    async def vote_comment(self, comment_id: UUID, user_wallet: str, vote_type: str) -> Comment:
        if vote_type not in ("upvote", "downvote"):
            raise ValidationFailure("Vote type must be either upvote or downvote")

        comment = await self.get_or_404(comment_id)
        await self.access.require_access(comment.video_id, user_wallet)
        if not comment.is_active:
            raise ValidationFailure("Cannot vote on an inactive comment")

        column = Comment.upvotes if vote_type == "upvote" else Comment.downvotes
        await self.db.execute(
            update(Comment)
            .where(Comment.id == comment_id)
            .values({column: column + 1})
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return await self.get_or_404(comment_id)
