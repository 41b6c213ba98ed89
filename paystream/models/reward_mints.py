import uuid

from sqlalchemy import Column, DateTime, Integer, String, Uuid, func

from paystream.db.database import Base


class RewardMint(Base):
    __tablename__ = "reward_mints"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    viewer_wallet = Column(String, nullable=False, index=True)
    creator = Column(String, nullable=False, index=True)
    mint = Column(String, nullable=False)

    amount = Column(Integer, nullable=False)
    tokens_owed = Column(Integer, nullable=False)
    signature = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
