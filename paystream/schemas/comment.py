from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field

from paystream.schemas.common import CamelModel, Pagination, WalletAddress


class CommentCreateRequest(CamelModel):
    user_wallet: WalletAddress
    content: str = Field(..., min_length=1, max_length=1000)
    parent_id: Optional[UUID] = None


class CommentUpdateRequest(CamelModel):
    user_wallet: WalletAddress
    content: str = Field(..., min_length=1, max_length=1000)


class CommentDeleteRequest(CamelModel):
    user_wallet: WalletAddress


class CommentVoteRequest(CamelModel):
    user_wallet: WalletAddress
    vote_type: Literal["upvote", "downvote"]


class CommentResponse(CamelModel):
    id: UUID
    video_id: UUID
    parent_id: Optional[UUID] = None
    user_wallet: str
    user_name: Optional[str] = None
    content: str
    is_active: bool
    upvotes: int
    downvotes: int
    created_at: datetime
    updated_at: datetime


class CommentEnvelope(CamelModel):
    success: bool = True
    data: CommentResponse


class CommentListResponse(CamelModel):
    success: bool = True
    count: int
    pagination: Pagination
    data: List[CommentResponse]


class CommentVotes(CamelModel):
    upvotes: int
    downvotes: int


class CommentVoteResponse(CamelModel):
    success: bool = True
    data: CommentVotes
