from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.api.deps import (
    get_authorizer,
    get_content_settings,
    get_content_store,
    get_ledger_gateway,
)
from paystream.clients.content_store import ContentStore
from paystream.clients.ledger_gateway import LedgerGateway
from paystream.core.config import ContentStoreSettings
from paystream.core.exceptions import ValidationFailure
from paystream.db.database import get_db
from paystream.schemas.common import Pagination, RefundSummaryOut
from paystream.schemas.video import (
    StreamResponse,
    VideoDeleteRequest,
    VideoDeleteResponse,
    VideoEnvelope,
    VideoListResponse,
    VideoResponse,
    VideoUpdateRequest,
    ViewCountResponse,
)
from paystream.services.video_service import UploadedFile, VideoService
from paystream.utils.security import WALLET_ADDRESS_PATTERN, Authorizer, validate_address

videos_router = APIRouter()

UPLOAD_CHUNK_BYTES = 1024 * 1024


async def read_upload(upload: Optional[UploadFile], limit: int, label: str) -> Optional[UploadedFile]:
    if upload is None:
        return None

    chunks = []
    size = 0
    while True:
        chunk = await upload.read(min(UPLOAD_CHUNK_BYTES, limit + 1 - size))
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            logger.warning(f"Rejected {label.lower()} {upload.filename!r}: more than {limit} bytes")
            raise ValidationFailure(f"{label} exceeds the {limit} byte limit")
        chunks.append(chunk)

    return UploadedFile(
        data=b"".join(chunks),
        filename=upload.filename or label.lower(),
        content_type=upload.content_type or "application/octet-stream",
    )


@videos_router.post("", response_model=VideoEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_video(
    title: str = Form(..., min_length=1, max_length=100),
    description: str = Form("", max_length=500),
    category: str = Form(..., min_length=1),
    price: float = Form(..., ge=0),
    uploader: str = Form(...),
    duration: float = Form(0, ge=0),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    content_store: ContentStore = Depends(get_content_store),
    ledger: LedgerGateway = Depends(get_ledger_gateway),
    settings: ContentStoreSettings = Depends(get_content_settings),
):
    uploader = validate_address(uploader, "uploader")
    video_file = await read_upload(video, settings.max_video_bytes, "Video")
    if video_file is None or not video_file.data:
        raise ValidationFailure("Please upload a video file")
    if video_file.content_type and not video_file.content_type.startswith("video/"):
        raise ValidationFailure("Only video files are allowed")

    thumbnail_file = await read_upload(thumbnail, settings.max_image_bytes, "Thumbnail")

    service = VideoService(db, content_store=content_store, ledger=ledger)
    created = await service.upload(
        video_file=video_file,
        title=title,
        description=description,
        category=category,
        price=price,
        uploader=uploader,
        thumbnail=thumbnail_file,
        duration=duration,
    )
    return VideoEnvelope(data=VideoResponse.model_validate(created))


@videos_router.get("", response_model=VideoListResponse)
async def list_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    videos, total = await VideoService(db).list_videos(page=page, limit=limit, category=category, search=search)
    return VideoListResponse(
        count=len(videos),
        pagination=Pagination.build(total, page, limit),
        data=[VideoResponse.model_validate(video) for video in videos],
    )


@videos_router.get("/uploader/{wallet_address}", response_model=VideoListResponse)
async def list_uploader_videos(
    wallet_address: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    videos, total = await VideoService(db).list_videos(page=page, limit=limit, uploader=wallet_address)
    return VideoListResponse(
        count=len(videos),
        pagination=Pagination.build(total, page, limit),
        data=[VideoResponse.model_validate(video) for video in videos],
    )


@videos_router.get("/{video_id}", response_model=VideoEnvelope)
async def get_video(video_id: UUID, db: AsyncSession = Depends(get_db)):
    video = await VideoService(db).get(video_id)
    return VideoEnvelope(data=VideoResponse.model_validate(video))


@videos_router.put("/{video_id}", response_model=VideoEnvelope)
async def update_video(
    video_id: UUID,
    payload: VideoUpdateRequest,
    db: AsyncSession = Depends(get_db),
    authorizer: Authorizer = Depends(get_authorizer),
):
    video = await VideoService(db, authorizer=authorizer).update_details(
        video_id,
        caller=payload.wallet_address,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        price=payload.price,
    )
    return VideoEnvelope(data=VideoResponse.model_validate(video))


@videos_router.delete("/{video_id}", response_model=VideoDeleteResponse)
async def delete_video(
    video_id: UUID,
    payload: VideoDeleteRequest,
    db: AsyncSession = Depends(get_db),
    authorizer: Authorizer = Depends(get_authorizer),
):
    video, refunds = await VideoService(db, authorizer=authorizer).take_down(video_id, payload.wallet_address)
    logger.info(f"Video {video_id} takedown settled {refunds.refunded}/{refunds.total} refunds")
    return VideoDeleteResponse(
        data=VideoResponse.model_validate(video),
        refunds=RefundSummaryOut(**refunds.as_dict()),
    )


@videos_router.post("/{video_id}/view", response_model=ViewCountResponse)
async def record_view(video_id: UUID, db: AsyncSession = Depends(get_db)):
    view_count = await VideoService(db).record_view(video_id)
    return ViewCountResponse(view_count=view_count)


@videos_router.get("/{video_id}/stream", response_model=StreamResponse)
async def stream_video(
    video_id: UUID,
    wallet_address: str = Query(..., alias="walletAddress", pattern=WALLET_ADDRESS_PATTERN),
    db: AsyncSession = Depends(get_db),
    content_store: ContentStore = Depends(get_content_store),
):
    url = await VideoService(db, content_store=content_store).stream_url(video_id, wallet_address)
    return StreamResponse(url=url)
