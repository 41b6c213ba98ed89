from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.api.deps import get_ledger_settings, get_reward_queue, get_reward_settings
from paystream.core.config import LedgerSettings, RewardSettings
from paystream.core.exceptions import Conflict, PaymentRequired
from paystream.db.database import get_db
from paystream.schemas.common import Pagination
from paystream.schemas.payment import (
    AccessData,
    AccessEnvelope,
    AccessRecordResponse,
    PaymentInfo,
    PaymentInfoResponse,
    PaymentRecordRequest,
    PurchasedVideo,
    PurchasedVideosResponse,
    VerifyAccessResponse,
    WatchTimeRequest,
)
from paystream.schemas.video import VideoResponse
from paystream.services.access_ledger import AccessLedger
from paystream.tasks.queue import RewardQueue

payments_router = APIRouter()


@payments_router.post("/record", response_model=AccessEnvelope, status_code=status.HTTP_201_CREATED)
async def record_payment(payload: PaymentRecordRequest, db: AsyncSession = Depends(get_db)):
    ledger = AccessLedger(db)
    try:
        access = await ledger.record_payment(
            video_id=payload.video_id,
            viewer_wallet=payload.viewer_wallet,
            tokens_paid=payload.tokens_paid,
            transaction_signature=payload.transaction_signature,
            video_pubkey=payload.video_pubkey,
            access_pubkey=payload.access_pubkey,
        )
    except Conflict as e:
        if e.record is not None:
            e.extra["accessData"] = AccessRecordResponse.model_validate(e.record).model_dump(
                mode="json", by_alias=True
            )
        raise

    return AccessEnvelope(data=AccessRecordResponse.model_validate(access))


@payments_router.get("/verify/{video_id}/{wallet_address}", response_model=VerifyAccessResponse)
async def verify_access(video_id: UUID, wallet_address: str, db: AsyncSession = Depends(get_db)):
    check = await AccessLedger(db).verify_access(video_id, wallet_address)
    if not check.has_access:
        raise PaymentRequired(price=check.price)

    return VerifyAccessResponse(
        access_data=AccessData(
            video_id=video_id,
            viewer_wallet=wallet_address,
            is_uploader=check.is_uploader,
            access=AccessRecordResponse.model_validate(check.access) if check.access else None,
        )
    )


@payments_router.get("/info/{video_id}", response_model=PaymentInfoResponse)
async def payment_info(
    video_id: UUID,
    db: AsyncSession = Depends(get_db),
    settings: LedgerSettings = Depends(get_ledger_settings),
):
    video = await AccessLedger(db).payment_info(video_id)
    return PaymentInfoResponse(
        data=PaymentInfo(
            video_pubkey=video.video_pubkey,
            price=video.price,
            uploader=video.uploader,
            platform_fee_percent=settings.platform_fee_percent,
        )
    )


@payments_router.get("/access/{wallet_address}", response_model=PurchasedVideosResponse)
async def purchased_videos(
    wallet_address: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await AccessLedger(db).list_purchases(wallet_address, page=page, limit=limit)
    return PurchasedVideosResponse(
        count=len(rows),
        pagination=Pagination.build(total, page, limit),
        data=[
            PurchasedVideo(
                access=AccessRecordResponse.model_validate(access),
                video=VideoResponse.model_validate(video),
            )
            for access, video in rows
        ],
    )


@payments_router.put("/watch-time/{access_id}", response_model=AccessEnvelope)
async def update_watch_time(
    access_id: UUID,
    payload: WatchTimeRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    reward_queue: RewardQueue = Depends(get_reward_queue),
    reward_settings: RewardSettings = Depends(get_reward_settings),
):
    update = await AccessLedger(db, reward_settings).update_watch_time(
        access_id,
        watch_time=payload.watch_time,
        completed=payload.completed,
    )
    access = update.access

    # Accrual runs after the response; its failures never reach the viewer.
    background_tasks.add_task(
        reward_queue.enqueue, access.viewer_wallet, update.creator, access.id, access.watch_time
    )
    logger.debug(f"Watch time for access {access_id} is {access.watch_time}s")

    return AccessEnvelope(data=AccessRecordResponse.model_validate(access))
