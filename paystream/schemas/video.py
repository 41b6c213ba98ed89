from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from paystream.models.videos import TakedownReason
from paystream.schemas.common import CamelModel, Pagination, RefundSummaryOut, WalletAddress


class VideoResponse(CamelModel):
    id: UUID
    title: str
    description: str
    category: str
    cid: str
    thumbnail_cid: Optional[str] = None
    duration: float
    price: float
    uploader: str
    video_pubkey: str
    view_count: int
    like_count: int
    dislike_count: int
    share_count: int
    comment_count: int
    dislike_ratio: float
    dislike_threshold: float
    minimum_interactions: int
    is_active: bool
    takedown_reason: Optional[TakedownReason] = None
    created_at: datetime
    updated_at: datetime


class VideoEnvelope(CamelModel):
    success: bool = True
    data: VideoResponse


class VideoListResponse(CamelModel):
    success: bool = True
    count: int
    pagination: Pagination
    data: List[VideoResponse]


class VideoUpdateRequest(CamelModel):
    wallet_address: WalletAddress
    title: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)


class VideoDeleteRequest(CamelModel):
    wallet_address: WalletAddress


class VideoDeleteResponse(CamelModel):
    success: bool = True
    data: VideoResponse
    refunds: RefundSummaryOut


class ViewCountResponse(CamelModel):
    success: bool = True
    view_count: int


class StreamResponse(CamelModel):
    success: bool = True
    url: str
