from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from paystream.models.interactions import InteractionType, ShareTarget, VoteType
from paystream.schemas.common import CamelModel, RefundSummaryOut, WalletAddress


class InteractionRequest(CamelModel):
    user_wallet: WalletAddress
    type: InteractionType
    shared_to: Optional[ShareTarget] = None


class InteractionStateOut(CamelModel):
    liked: bool
    disliked: bool
    shared: bool
    shared_to: Optional[ShareTarget] = None
    share_count: int = 0


class VideoCountsOut(CamelModel):
    like_count: int
    dislike_count: int
    share_count: int
    comment_count: int
    dislike_ratio: float
    is_active: bool


class InteractionResponse(CamelModel):
    success: bool = True
    data: InteractionStateOut
    video: VideoCountsOut
    refunds: Optional[RefundSummaryOut] = None


class InteractionRecord(CamelModel):
    id: UUID
    video_id: UUID
    user_wallet: str
    vote: Optional[VoteType] = None
    shared_to: Optional[ShareTarget] = None
    share_count: int
    created_at: datetime
    updated_at: datetime


class InteractionListResponse(CamelModel):
    success: bool = True
    count: int
    data: List[InteractionRecord]


class StatsResponse(CamelModel):
    success: bool = True
    data: VideoCountsOut


class UserInteractionResponse(CamelModel):
    success: bool = True
    data: InteractionStateOut


class ThresholdRequest(CamelModel):
    user_wallet: WalletAddress
    dislike_threshold: Optional[float] = Field(default=None, ge=0, le=1)
    minimum_interactions: Optional[int] = Field(default=None, ge=0)


class Thresholds(CamelModel):
    dislike_threshold: float
    minimum_interactions: int


class ThresholdResponse(CamelModel):
    success: bool = True
    data: Thresholds
