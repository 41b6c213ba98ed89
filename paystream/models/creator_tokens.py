import uuid

from sqlalchemy import Column, DateTime, Integer, String, Uuid, func

from paystream.db.database import Base


class CreatorToken(Base):
    __tablename__ = "creator_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    creator = Column(String, nullable=False, unique=True, index=True)

    mint = Column(String, nullable=False)
    creator_token = Column(String, nullable=False)
    mint_authority = Column(String, nullable=False)
    mint_bump = Column(Integer, nullable=True)
    decimals = Column(Integer, nullable=False, default=0)

    signature = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
