from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from paystream.schemas.common import CamelModel, WalletAddress


class RewardWatchRequest(CamelModel):
    viewer: WalletAddress
    video_id: UUID


class RewardWatchResponse(CamelModel):
    success: bool = True
    reward: int
    tokens_owed: int
    total_watch_time: float


class CreatorTokenCreateRequest(CamelModel):
    creator: WalletAddress
    decimals: int = Field(default=0, ge=0, le=9)


class CreatorTokenResponse(CamelModel):
    creator: str
    mint: str
    creator_token: str
    mint_authority: str
    mint_bump: Optional[int] = None
    decimals: int
    signature: Optional[str] = None
    created_at: datetime


class CreatorTokenEnvelope(CamelModel):
    success: bool = True
    data: CreatorTokenResponse


class CreatorProgressOut(CamelModel):
    creator: str
    mint: Optional[str] = None
    total_watch_time: float
    tokens_owed: int
    balance: int
    progress: float


class ViewerTokensResponse(CamelModel):
    success: bool = True
    count: int
    data: List[CreatorProgressOut]
