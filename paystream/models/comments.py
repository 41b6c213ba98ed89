import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Uuid, func

from paystream.db.database import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    video_id = Column(Uuid, ForeignKey("videos.id"), nullable=False, index=True)
    parent_id = Column(Uuid, ForeignKey("comments.id"), nullable=True, index=True)

    user_wallet = Column(String, nullable=False, index=True)
    user_name = Column(String, nullable=True)
    content = Column(String(1000), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)
    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
