from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.api.deps import get_authorizer
from paystream.db.database import get_db
from paystream.schemas.comment import (
    CommentCreateRequest,
    CommentDeleteRequest,
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CommentUpdateRequest,
    CommentVoteRequest,
    CommentVoteResponse,
    CommentVotes,
)
from paystream.schemas.common import Pagination
from paystream.services.comment_service import CommentService
from paystream.utils.security import Authorizer

comments_router = APIRouter()


@comments_router.post("/{video_id}", response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
async def add_comment(video_id: UUID, payload: CommentCreateRequest, db: AsyncSession = Depends(get_db)):
    comment = await CommentService(db).add_comment(
        video_id,
        payload.user_wallet,
        payload.content,
        parent_id=payload.parent_id,
    )
    return CommentEnvelope(data=CommentResponse.model_validate(comment))


@comments_router.get("/video/{video_id}", response_model=CommentListResponse)
async def list_comments(
    video_id: UUID,
    parent_id: Optional[UUID] = Query(None, alias="parentId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    comments, total = await CommentService(db).list_comments(video_id, parent_id=parent_id, page=page, limit=limit)
    return CommentListResponse(
        count=len(comments),
        pagination=Pagination.build(total, page, limit),
        data=[CommentResponse.model_validate(comment) for comment in comments],
    )


@comments_router.put("/{comment_id}", response_model=CommentEnvelope)
async def update_comment(
    comment_id: UUID,
    payload: CommentUpdateRequest,
    db: AsyncSession = Depends(get_db),
    authorizer: Authorizer = Depends(get_authorizer),
):
    comment = await CommentService(db, authorizer=authorizer).update_comment(
        comment_id, payload.user_wallet, payload.content
    )
    return CommentEnvelope(data=CommentResponse.model_validate(comment))


@comments_router.delete("/{comment_id}")
async def delete_comment(
    comment_id: UUID,
    payload: CommentDeleteRequest,
    db: AsyncSession = Depends(get_db),
    authorizer: Authorizer = Depends(get_authorizer),
):
    await CommentService(db, authorizer=authorizer).delete_comment(comment_id, payload.user_wallet)
    return {"success": True, "message": "Comment deleted"}


@comments_router.post("/vote/{comment_id}", response_model=CommentVoteResponse)
async def vote_comment(comment_id: UUID, payload: CommentVoteRequest, db: AsyncSession = Depends(get_db)):
    comment = await CommentService(db).vote_comment(comment_id, payload.user_wallet, payload.vote_type)
    return CommentVoteResponse(data=CommentVotes(upvotes=comment.upvotes, downvotes=comment.downvotes))
