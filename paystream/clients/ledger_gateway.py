from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import httpx
from loguru import logger

from paystream.core.config import LedgerSettings
from paystream.core.exceptions import UpstreamFailure


@dataclass(frozen=True)
class DerivedAddress:
    address: str
    bump: Optional[int] = None


@dataclass(frozen=True)
class MintCreation:
    mint: str
    signature: str


class LedgerGateway(ABC):
    """Narrow view of the on-chain program: addresses, mints, balances."""

    @abstractmethod
    async def derive_address(self, seeds: List[str]) -> DerivedAddress:
        ...

    @abstractmethod
    async def create_mint(
        self,
        creator: str,
        decimals: int,
        creator_token: str,
        mint_authority: str,
    ) -> MintCreation:
        ...

    @abstractmethod
    async def mint_to(
        self,
        mint: str,
        mint_authority: str,
        creator: str,
        recipient: str,
        amount: int,
    ) -> str:
        ...

    @abstractmethod
    async def get_token_balance(self, mint: str, owner: str) -> int:
        ...

    async def close(self) -> None:
        return None


class HttpLedgerGateway(LedgerGateway):
    def __init__(self, settings: LedgerSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.base_url = str(settings.ledger_api_url).rstrip("/")
        headers = {"X-Network": settings.ledger_network.value}
        if settings.ledger_api_key:
            headers["Authorization"] = f"Bearer {settings.ledger_api_key}"
        self.client = httpx.AsyncClient(
            timeout=settings.ledger_timeout,
            headers=headers,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, f"{self.base_url}{path}", **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.error(f"Ledger error on {method} {path}: {e.response.status_code} - {e.response.text}")
            raise UpstreamFailure(f"Ledger gateway returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Ledger unreachable on {method} {path}: {e}")
            raise UpstreamFailure("Ledger gateway is unreachable") from e

    async def derive_address(self, seeds: List[str]) -> DerivedAddress:
        response = await self._request(
            "POST",
            "/addresses/derive",
            json={"programId": self.settings.program_id, "seeds": seeds},
        )
        data = response.json()
        return DerivedAddress(address=data["address"], bump=data.get("bump"))

    async def create_mint(
        self,
        creator: str,
        decimals: int,
        creator_token: str,
        mint_authority: str,
    ) -> MintCreation:
        response = await self._request(
            "POST",
            "/mints",
            json={
                "programId": self.settings.program_id,
                "creator": creator,
                "decimals": decimals,
                "creatorToken": creator_token,
                "mintAuthority": mint_authority,
            },
        )
        data = response.json()
        return MintCreation(mint=data["mint"], signature=data["signature"])

    async def mint_to(
        self,
        mint: str,
        mint_authority: str,
        creator: str,
        recipient: str,
        amount: int,
    ) -> str:
        response = await self._request(
            "POST",
            f"/mints/{mint}/mint-to",
            json={
                "programId": self.settings.program_id,
                "creator": creator,
                "mintAuthority": mint_authority,
                "recipient": recipient,
                "amount": amount,
            },
        )
        return response.json()["signature"]

    async def get_token_balance(self, mint: str, owner: str) -> int:
        try:
            response = await self.client.get(f"{self.base_url}/mints/{mint}/balances/{owner}")
        except httpx.HTTPError as e:
            logger.error(f"Ledger unreachable reading balance of {owner}: {e}")
            raise UpstreamFailure("Ledger gateway is unreachable") from e

        # No associated token account yet.
        if response.status_code == httpx.codes.NOT_FOUND:
            return 0

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Ledger error reading balance of {owner}: {e.response.status_code} - {e.response.text}")
            raise UpstreamFailure(f"Ledger gateway returned {e.response.status_code}") from e
        return int(response.json().get("amount", 0))

    async def close(self) -> None:
        await self.client.aclose()
