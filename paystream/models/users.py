import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Uuid, func

from paystream.db.database import Base


class Users(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    wallet_address = Column(String, unique=True, index=True, nullable=False)

    username = Column(String, nullable=True, index=True)
    bio = Column(String(500), nullable=True)
    profile_picture = Column(String, nullable=True)
    social_links = Column(JSON, nullable=True)

    videos_uploaded = Column(Integer, nullable=False, default=0)
    videos_watched = Column(Integer, nullable=False, default=0)
    tokens_spent = Column(Float, nullable=False, default=0)
    tokens_earned = Column(Float, nullable=False, default=0)
    tokens_refunded = Column(Float, nullable=False, default=0)

    is_creator = Column(Boolean, nullable=False, default=False)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
