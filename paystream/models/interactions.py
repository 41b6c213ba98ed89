import enum
import uuid

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)

from paystream.db.database import Base


class InteractionType(str, enum.Enum):
    LIKE = "like"
    DISLIKE = "dislike"
    SHARE = "share"


class VoteType(str, enum.Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class ShareTarget(str, enum.Enum):
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    TELEGRAM = "telegram"
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    OTHER = "other"


def _enum_values(members):
    return [member.value for member in members]


class Interaction(Base):
    """A viewer's reactions to one video.

    ``vote`` is the single active like-or-dislike slot; shares are counted
    separately and never toggle.
    """

    __tablename__ = "interactions"
    __table_args__ = (
        UniqueConstraint("video_id", "user_wallet", name="uq_interactions_video_user"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    video_id = Column(Uuid, ForeignKey("videos.id"), nullable=False, index=True)
    user_wallet = Column(String, nullable=False, index=True)

    vote = Column(Enum(VoteType, name="vote_type", values_callable=_enum_values), nullable=True)
    shared_to = Column(Enum(ShareTarget, name="share_target", values_callable=_enum_values), nullable=True)
    share_count = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"version_id_col": version}
