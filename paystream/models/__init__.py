from paystream.models.comments import Comment
from paystream.models.creator_tokens import CreatorToken
from paystream.models.interactions import Interaction, InteractionType, ShareTarget, VoteType
from paystream.models.reward_mints import RewardMint
from paystream.models.users import Users
from paystream.models.video_access import VideoAccess
from paystream.models.videos import TakedownReason, Video

__all__ = [
    "Comment",
    "CreatorToken",
    "Interaction",
    "InteractionType",
    "RewardMint",
    "ShareTarget",
    "TakedownReason",
    "Users",
    "VideoAccess",
    "Video",
    "VoteType",
]
