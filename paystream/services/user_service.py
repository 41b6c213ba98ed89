from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.core.exceptions import NotFound
from paystream.models.users import Users

COUNTER_FIELDS = (
    "videos_uploaded",
    "videos_watched",
    "tokens_spent",
    "tokens_earned",
    "tokens_refunded",
)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_wallet(self, wallet_address: str) -> Optional[Users]:
        result = await self.db.execute(
            select(Users).where(Users.wallet_address == wallet_address)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, wallet_address: str) -> Users:
        user = await self.get_by_wallet(wallet_address)
        if user is None:
            raise NotFound("User not found")
        return user

    async def increment_counters(self, wallet_address: str, **deltas: float) -> None:
        """Atomically add ``deltas`` to the user's counters, creating the user if needed.

        Does not commit; callers decide the transaction boundary.
        """
        unknown = set(deltas) - set(COUNTER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown user counters: {sorted(unknown)}")

        dialect = self.db.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert

        stmt = insert(Users).values(wallet_address=wallet_address, **deltas)
        updates: Dict[str, Any] = {
            name: getattr(Users, name) + value for name, value in deltas.items()
        }
        updates["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=[Users.wallet_address],
            set_=updates,
        )
        await self.db.execute(stmt)

    async def mark_creator(self, wallet_address: str) -> None:
        await self.increment_counters(wallet_address)
        await self.db.execute(
            update(Users)
            .where(Users.wallet_address == wallet_address)
            .values(is_creator=True)
            .execution_options(synchronize_session=False)
        )

    async def upsert_profile(
        self,
        wallet_address: str,
        username: Optional[str] = None,
        bio: Optional[str] = None,
        social_links: Optional[Dict[str, Any]] = None,
    ) -> Users:
        user = await self.get_by_wallet(wallet_address)

        if user is None:
            logger.info(f"Creating profile for {wallet_address}")
            user = Users(
                wallet_address=wallet_address,
                username=username or "",
                bio=bio or "",
                social_links=social_links or {},
            )
            self.db.add(user)
        else:
            if username:
                user.username = username
            if bio:
                user.bio = bio
            if social_links:
                user.social_links = social_links

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def set_profile_picture(self, wallet_address: str, cid: str) -> Users:
        user = await self.get_or_404(wallet_address)
        user.profile_picture = cid
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def top_creators(self, limit: int = 10) -> List[Users]:
        result = await self.db.execute(
            select(Users)
            .where(Users.is_creator.is_(True))
            .order_by(Users.tokens_earned.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    def display_name(user: Optional[Users], wallet_address: str) -> str:
        if user and user.username:
            return user.username
        return f"{wallet_address[:6]}...{wallet_address[-4:]}"
