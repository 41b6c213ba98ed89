from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paystream.clients.ledger_gateway import LedgerGateway
from paystream.core.exceptions import Conflict, NotFound
from paystream.models.creator_tokens import CreatorToken
from paystream.services.user_service import UserService


class CreatorTokenService:
    def __init__(self, db: AsyncSession, ledger: LedgerGateway):
        self.db = db
        self.ledger = ledger
        self.users = UserService(db)

    async def get_by_creator(self, creator: str) -> Optional[CreatorToken]:
        result = await self.db.execute(select(CreatorToken).where(CreatorToken.creator == creator))
        return result.scalar_one_or_none()

    async def get_or_404(self, creator: str) -> CreatorToken:
        token = await self.get_by_creator(creator)
        if token is None:
            raise NotFound("Creator token not found")
        return token

    async def create_creator_token(self, creator: str, decimals: int = 0) -> CreatorToken:
        existing = await self.get_by_creator(creator)
        if existing is not None:
            raise Conflict("Creator token already exists", record=existing)

        token_account = await self.ledger.derive_address(["creator_token", creator])
        authority = await self.ledger.derive_address(["mint_authority", creator])
        created = await self.ledger.create_mint(
            creator=creator,
            decimals=decimals,
            creator_token=token_account.address,
            mint_authority=authority.address,
        )

        token = CreatorToken(
            creator=creator,
            mint=created.mint,
            creator_token=token_account.address,
            mint_authority=authority.address,
            mint_bump=authority.bump,
            decimals=decimals,
            signature=created.signature,
        )
        self.db.add(token)
        await self.users.mark_creator(creator)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(f"Creator token for {creator} was created concurrently, mint {created.mint} is orphaned")
            raise Conflict("Creator token already exists", record=await self.get_by_creator(creator))

        await self.db.refresh(token)
        logger.info(f"Created creator token {token.mint} for {creator}: {created.signature}")
        return token
