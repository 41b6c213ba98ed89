from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import Field

from paystream.schemas.common import CamelModel


class UserUpdateRequest(CamelModel):
    username: Optional[str] = Field(default=None, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)
    social_links: Optional[Dict[str, str]] = None


class UserResponse(CamelModel):
    id: UUID
    wallet_address: str
    username: Optional[str] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    social_links: Optional[Dict[str, str]] = None
    videos_uploaded: int
    videos_watched: int
    tokens_spent: float
    tokens_earned: float
    tokens_refunded: float
    is_creator: bool
    is_verified: bool
    created_at: datetime
    updated_at: datetime


class UserEnvelope(CamelModel):
    success: bool = True
    data: UserResponse


class UserStats(CamelModel):
    videos_uploaded: int
    videos_watched: int
    tokens_earned: float
    tokens_spent: float
    tokens_refunded: float


class UserStatsResponse(CamelModel):
    success: bool = True
    data: UserStats


class CreatorSummary(CamelModel):
    wallet_address: str
    username: Optional[str] = None
    profile_picture: Optional[str] = None
    tokens_earned: float
    videos_uploaded: int


class TopCreatorsResponse(CamelModel):
    success: bool = True
    count: int
    data: List[CreatorSummary]
