import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    UniqueConstraint,
    Uuid,
    func,
)

from paystream.db.database import Base


class VideoAccess(Base):
    __tablename__ = "video_access"
    __table_args__ = (
        UniqueConstraint("video_id", "viewer_wallet", name="uq_video_access_video_viewer"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    video_id = Column(Uuid, ForeignKey("videos.id"), nullable=False, index=True)
    viewer_wallet = Column(String, nullable=False, index=True)

    video_pubkey = Column(String, nullable=False)
    access_pubkey = Column(String, nullable=False)

    # Frozen at payment time, independent of later price changes.
    tokens_paid = Column(Float, nullable=False)
    transaction_signature = Column(String, nullable=False, unique=True)

    watch_time = Column(Float, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)

    refunded = Column(Boolean, nullable=False, default=False)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
