from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.api.deps import get_authorizer
from paystream.db.database import get_db
from paystream.models.interactions import InteractionType
from paystream.schemas.common import RefundSummaryOut
from paystream.schemas.interaction import (
    InteractionListResponse,
    InteractionRecord,
    InteractionRequest,
    InteractionResponse,
    InteractionStateOut,
    StatsResponse,
    ThresholdRequest,
    ThresholdResponse,
    Thresholds,
    UserInteractionResponse,
    VideoCountsOut,
)
from paystream.services.access_ledger import AccessLedger
from paystream.services.engagement_service import EngagementAggregator
from paystream.utils.security import WALLET_ADDRESS_PATTERN, Authorizer

interactions_router = APIRouter()


@interactions_router.post("/{video_id}", response_model=InteractionResponse)
async def add_interaction(
    video_id: UUID,
    payload: InteractionRequest,
    db: AsyncSession = Depends(get_db),
):
    await AccessLedger(db).require_access(video_id, payload.user_wallet)

    outcome = await EngagementAggregator(db).apply_interaction(
        video_id,
        payload.user_wallet,
        payload.type,
        shared_to=payload.shared_to,
    )
    return InteractionResponse(
        data=InteractionStateOut.model_validate(outcome.interaction),
        video=VideoCountsOut.model_validate(outcome.video),
        refunds=RefundSummaryOut(**outcome.refunds.as_dict()) if outcome.refunds else None,
    )


@interactions_router.get("/video/{video_id}", response_model=InteractionListResponse)
async def list_interactions(
    video_id: UUID,
    type: Optional[InteractionType] = None,
    db: AsyncSession = Depends(get_db),
):
    interactions = await EngagementAggregator(db).list_interactions(video_id, type)
    return InteractionListResponse(
        count=len(interactions),
        data=[InteractionRecord.model_validate(interaction) for interaction in interactions],
    )


@interactions_router.get("/stats/{video_id}", response_model=StatsResponse)
async def interaction_stats(video_id: UUID, db: AsyncSession = Depends(get_db)):
    counts = await EngagementAggregator(db).stats(video_id)
    return StatsResponse(data=VideoCountsOut.model_validate(counts))


@interactions_router.get("/user/{video_id}", response_model=UserInteractionResponse)
async def user_interactions(
    video_id: UUID,
    user_wallet: str = Query(..., alias="userWallet", pattern=WALLET_ADDRESS_PATTERN),
    db: AsyncSession = Depends(get_db),
):
    state = await EngagementAggregator(db).user_state(video_id, user_wallet)
    return UserInteractionResponse(data=InteractionStateOut.model_validate(state))


@interactions_router.put("/threshold/{video_id}", response_model=ThresholdResponse)
async def update_threshold(
    video_id: UUID,
    payload: ThresholdRequest,
    db: AsyncSession = Depends(get_db),
    authorizer: Authorizer = Depends(get_authorizer),
):
    video = await EngagementAggregator(db, authorizer=authorizer).update_thresholds(
        video_id,
        caller=payload.user_wallet,
        dislike_threshold=payload.dislike_threshold,
        minimum_interactions=payload.minimum_interactions,
    )
    return ThresholdResponse(
        data=Thresholds(
            dislike_threshold=video.dislike_threshold,
            minimum_interactions=video.minimum_interactions,
        )
    )
