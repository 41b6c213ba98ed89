from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.api.deps import get_content_settings, get_content_store
from paystream.api.videos import read_upload
from paystream.clients.content_store import ContentStore
from paystream.core.config import ContentStoreSettings
from paystream.core.exceptions import ValidationFailure
from paystream.db.database import get_db
from paystream.schemas.user import (
    CreatorSummary,
    TopCreatorsResponse,
    UserEnvelope,
    UserResponse,
    UserStats,
    UserStatsResponse,
    UserUpdateRequest,
)
from paystream.services.user_service import UserService
from paystream.utils.security import validate_address

users_router = APIRouter()


@users_router.get("/creators/top", response_model=TopCreatorsResponse)
async def top_creators(limit: int = Query(10, ge=1, le=100), db: AsyncSession = Depends(get_db)):
    creators = await UserService(db).top_creators(limit)
    return TopCreatorsResponse(
        count=len(creators),
        data=[CreatorSummary.model_validate(creator) for creator in creators],
    )


@users_router.get("/{wallet_address}", response_model=UserEnvelope)
async def get_user(wallet_address: str, db: AsyncSession = Depends(get_db)):
    user = await UserService(db).get_or_404(wallet_address)
    return UserEnvelope(data=UserResponse.model_validate(user))


@users_router.put("/{wallet_address}", response_model=UserEnvelope)
async def update_user(wallet_address: str, payload: UserUpdateRequest, db: AsyncSession = Depends(get_db)):
    wallet_address = validate_address(wallet_address)
    user = await UserService(db).upsert_profile(
        wallet_address,
        username=payload.username,
        bio=payload.bio,
        social_links=payload.social_links,
    )
    return UserEnvelope(data=UserResponse.model_validate(user))


@users_router.get("/{wallet_address}/stats", response_model=UserStatsResponse)
async def user_stats(wallet_address: str, db: AsyncSession = Depends(get_db)):
    user = await UserService(db).get_or_404(wallet_address)
    return UserStatsResponse(data=UserStats.model_validate(user))


@users_router.post("/{wallet_address}/profile-picture", response_model=UserEnvelope)
async def upload_profile_picture(
    wallet_address: str,
    image: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    content_store: ContentStore = Depends(get_content_store),
    settings: ContentStoreSettings = Depends(get_content_settings),
):
    service = UserService(db)
    await service.get_or_404(wallet_address)

    picture = await read_upload(image, settings.max_image_bytes, "Image")
    if not picture.data:
        raise ValidationFailure("Please upload an image")
    if not picture.content_type.startswith("image/"):
        raise ValidationFailure("Only image files are allowed")

    stored = await content_store.store(picture.data, picture.filename, picture.content_type)
    user = await service.set_profile_picture(wallet_address, stored.cid)
    return UserEnvelope(data=UserResponse.model_validate(user))
