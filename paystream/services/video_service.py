from dataclasses import dataclass
from typing import List, Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.clients.content_store import ContentStore
from paystream.clients.ledger_gateway import LedgerGateway
from paystream.core.exceptions import Conflict, NotFound, ValidationFailure
from paystream.models.videos import TakedownReason, Video
from paystream.services.access_ledger import AccessLedger
from paystream.services.refund_service import RefundCoordinator, RefundSummary
from paystream.services.user_service import UserService
from paystream.utils.security import Authorizer, TrustedAddressAuthorizer


@dataclass
class UploadedFile:
    data: bytes
    filename: str
    content_type: str


class VideoService:
    def __init__(
        self,
        db: AsyncSession,
        content_store: Optional[ContentStore] = None,
        ledger: Optional[LedgerGateway] = None,
        refunds: Optional[RefundCoordinator] = None,
        authorizer: Optional[Authorizer] = None,
    ):
        self.db = db
        self.content_store = content_store
        self.ledger = ledger
        self.refunds = refunds or RefundCoordinator(db)
        self.authorizer = authorizer or TrustedAddressAuthorizer()
        self.users = UserService(db)

    async def get(self, video_id: UUID) -> Video:
        video = await self.db.get(Video, video_id, populate_existing=True)
        if video is None:
            raise NotFound("Video not found")
        return video

    async def upload(
        self,
        video_file: UploadedFile,
        title: str,
        description: str,
        category: str,
        price: float,
        uploader: str,
        thumbnail: Optional[UploadedFile] = None,
        duration: float = 0,
    ) -> Video:
        if not video_file.data:
            raise ValidationFailure("Please upload a video file")
        if price < 0:
            raise ValidationFailure("Price must not be negative")

        stored = await self.content_store.store(video_file.data, video_file.filename, video_file.content_type)

        thumbnail_cid = None
        if thumbnail is not None and thumbnail.data:
            try:
                thumbnail_cid = (
                    await self.content_store.store(thumbnail.data, thumbnail.filename, thumbnail.content_type)
                ).cid
            except Exception as e:
                logger.error(f"Thumbnail upload for {stored.cid} failed, continuing without one: {e}")

        video_account = await self.ledger.derive_address(["video", uploader, stored.cid])

        video = Video(
            title=title,
            description=description,
            category=category,
            price=price,
            uploader=uploader,
            cid=stored.cid,
            thumbnail_cid=thumbnail_cid,
            video_pubkey=video_account.address,
            duration=duration,
        )
        self.db.add(video)
        await self.users.mark_creator(uploader)
        await self.users.increment_counters(uploader, videos_uploaded=1)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("This video content has already been uploaded")

        await self.db.refresh(video)
        logger.info(f"Video {video.id} uploaded by {uploader} as {stored.cid}")
        return video

    async def list_videos(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        search: Optional[str] = None,
        uploader: Optional[str] = None,
    ) -> Tuple[List[Video], int]:
        conditions = [Video.is_active.is_(True)]
        if category:
            conditions.append(Video.category == category)
        if uploader:
            conditions.append(Video.uploader == uploader)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Video.title.ilike(pattern), Video.description.ilike(pattern)))

        total = (await self.db.execute(select(func.count(Video.id)).where(*conditions))).scalar_one()
        result = await self.db.execute(
            select(Video)
            .where(*conditions)
            .order_by(Video.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), int(total or 0)

    async def update_details(
        self,
        video_id: UUID,
        caller: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        price: Optional[float] = None,
    ) -> Video:
        video = await self.get(video_id)
        await self.authorizer.verify_caller(caller, video.uploader, "update this video")

        if title:
            video.title = title
        if description:
            video.description = description
        if category:
            video.category = category
        if price is not None:
            if price < 0:
                raise ValidationFailure("Price must not be negative")
            video.price = price

        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def take_down(self, video_id: UUID, caller: str) -> Tuple[Video, RefundSummary]:
        video = await self.get(video_id)
        await self.authorizer.verify_caller(caller, video.uploader, "delete this video")

        result = await self.db.execute(
            update(Video)
            .where(Video.id == video_id, Video.is_active.is_(True))
            .values(is_active=False, takedown_reason=TakedownReason.UPLOADER_REMOVED)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount == 1:
            logger.info(f"Video {video_id} removed by uploader {caller}")
        else:
            logger.info(f"Video {video_id} was already inactive, settling outstanding refunds")

        try:
            refunds = await self.refunds.process_refunds(video_id)
        except Exception as e:
            logger.exception(f"Refunds for video {video_id} failed: {e}")
            refunds = RefundSummary(refunded=0, total=0)

        return await self.get(video_id), refunds

    async def record_view(self, video_id: UUID) -> int:
        await self.get(video_id)
        await self.db.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(view_count=Video.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return (await self.get(video_id)).view_count

    async def stream_url(self, video_id: UUID, viewer_wallet: str) -> str:
        await AccessLedger(self.db).require_access(video_id, viewer_wallet)
        video = await self.get(video_id)
        return self.content_store.resolve_url(video.cid)
