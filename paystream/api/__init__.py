from fastapi import APIRouter
from paystream.api import comments, interactions, payments, rewards, users, videos

api_router = APIRouter()

api_router.include_router(videos.videos_router, prefix="/videos", tags=["videos"])
api_router.include_router(payments.payments_router, prefix="/payments", tags=["payments"])
api_router.include_router(interactions.interactions_router, prefix="/interactions", tags=["interactions"])
api_router.include_router(comments.comments_router, prefix="/comments", tags=["comments"])
api_router.include_router(users.users_router, prefix="/users", tags=["users"])
api_router.include_router(rewards.rewards_router, prefix="/rewards", tags=["rewards"])
api_router.include_router(rewards.creator_tokens_router, prefix="/creator-token", tags=["rewards"])

__all__ = ["api_router"]
