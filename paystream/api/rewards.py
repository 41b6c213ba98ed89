from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.api.deps import get_ledger_gateway, get_reward_settings
from paystream.clients.ledger_gateway import LedgerGateway
from paystream.core.config import RewardSettings
from paystream.db.database import get_db
from paystream.schemas.reward import (
    CreatorProgressOut,
    CreatorTokenCreateRequest,
    CreatorTokenEnvelope,
    CreatorTokenResponse,
    RewardWatchRequest,
    RewardWatchResponse,
    ViewerTokensResponse,
)
from paystream.services.access_ledger import AccessLedger
from paystream.services.creator_token_service import CreatorTokenService
from paystream.services.reward_service import RewardAccrualEngine, tokens_owed

rewards_router = APIRouter()
creator_tokens_router = APIRouter()


@rewards_router.post("/watch", response_model=RewardWatchResponse)
async def reward_watch(
    payload: RewardWatchRequest,
    db: AsyncSession = Depends(get_db),
    ledger: LedgerGateway = Depends(get_ledger_gateway),
    settings: RewardSettings = Depends(get_reward_settings),
):
    video = await AccessLedger(db).get_video(payload.video_id)
    creator = video.uploader

    engine = RewardAccrualEngine(db, ledger, settings)
    minted = await engine.accrue_and_mint(payload.viewer, creator)
    total = await engine.total_watch_time(payload.viewer, creator)

    return RewardWatchResponse(
        reward=minted,
        tokens_owed=tokens_owed(total, settings.reward_threshold_seconds),
        total_watch_time=total,
    )


@creator_tokens_router.post("/create", response_model=CreatorTokenEnvelope, status_code=status.HTTP_201_CREATED)
async def create_creator_token(
    payload: CreatorTokenCreateRequest,
    db: AsyncSession = Depends(get_db),
    ledger: LedgerGateway = Depends(get_ledger_gateway),
):
    token = await CreatorTokenService(db, ledger).create_creator_token(payload.creator, decimals=payload.decimals)
    return CreatorTokenEnvelope(data=CreatorTokenResponse.model_validate(token))


@creator_tokens_router.get("/viewer/{wallet_address}", response_model=ViewerTokensResponse)
async def viewer_tokens(
    wallet_address: str,
    db: AsyncSession = Depends(get_db),
    ledger: LedgerGateway = Depends(get_ledger_gateway),
    settings: RewardSettings = Depends(get_reward_settings),
):
    progress = await RewardAccrualEngine(db, ledger, settings).viewer_progress(wallet_address)
    return ViewerTokensResponse(
        count=len(progress),
        data=[CreatorProgressOut.model_validate(entry) for entry in progress],
    )
