from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from paystream.schemas.common import CamelModel, Pagination, WalletAddress
from paystream.schemas.video import VideoResponse


class PaymentRecordRequest(CamelModel):
    video_id: UUID
    viewer_wallet: WalletAddress
    tokens_paid: float = Field(..., ge=0)
    transaction_signature: str = Field(..., min_length=1)
    video_pubkey: str = Field(..., min_length=1)
    access_pubkey: str = Field(..., min_length=1)


class AccessRecordResponse(CamelModel):
    id: UUID
    video_id: UUID
    viewer_wallet: str
    video_pubkey: str
    access_pubkey: str
    tokens_paid: float
    transaction_signature: str
    watch_time: float
    completed: bool
    refunded: bool
    created_at: datetime
    updated_at: datetime


class AccessEnvelope(CamelModel):
    success: bool = True
    data: AccessRecordResponse


class AccessData(CamelModel):
    video_id: UUID
    viewer_wallet: str
    is_uploader: bool = False
    access: Optional[AccessRecordResponse] = None


class VerifyAccessResponse(CamelModel):
    success: bool = True
    has_access: bool = True
    access_data: AccessData


class WatchTimeRequest(CamelModel):
    watch_time: Optional[float] = Field(default=None, ge=0)
    completed: Optional[bool] = None


class PaymentInfo(CamelModel):
    video_pubkey: str
    price: float
    uploader: str
    platform_fee_percent: float


class PaymentInfoResponse(CamelModel):
    success: bool = True
    data: PaymentInfo


class PurchasedVideo(CamelModel):
    access: AccessRecordResponse
    video: VideoResponse


class PurchasedVideosResponse(CamelModel):
    success: bool = True
    count: int
    pagination: Pagination
    data: List[PurchasedVideo]
