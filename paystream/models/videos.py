import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, Integer, String, Uuid, func

from paystream.db.database import Base


class TakedownReason(str, enum.Enum):
    DISLIKE_RATIO = "dislike_ratio"
    ADMIN_ACTION = "admin_action"
    UPLOADER_REMOVED = "uploader_removed"


class Video(Base):
    __tablename__ = "videos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    category = Column(String, nullable=False, index=True)

    cid = Column(String, nullable=False, unique=True)
    thumbnail_cid = Column(String, nullable=True)
    duration = Column(Float, nullable=False, default=0)

    price = Column(Float, nullable=False, default=0)
    uploader = Column(String, nullable=False, index=True)
    video_pubkey = Column(String, nullable=False)

    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    dislike_count = Column(Integer, nullable=False, default=0)
    share_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)

    dislike_ratio = Column(Float, nullable=False, default=0)
    dislike_threshold = Column(Float, nullable=False, default=0.8)
    minimum_interactions = Column(Integer, nullable=False, default=100)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    takedown_reason = Column(
        Enum(
            TakedownReason,
            name="takedown_reason",
            values_callable=lambda reasons: [reason.value for reason in reasons],
        ),
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
