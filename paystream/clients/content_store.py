from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx
from loguru import logger

from paystream.core.config import ContentStoreSettings
from paystream.core.exceptions import UpstreamFailure


@dataclass(frozen=True)
class StoredContent:
    cid: str
    size: int


class ContentStore(ABC):
    @abstractmethod
    async def store(self, data: bytes, filename: str, content_type: str) -> StoredContent:
        ...

    @abstractmethod
    def resolve_url(self, cid: str) -> str:
        ...

    async def close(self) -> None:
        return None


class IpfsContentStore(ContentStore):
    """Content-addressed storage through the IPFS HTTP API."""

    def __init__(self, settings: ContentStoreSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.api_url = str(settings.ipfs_api_url).rstrip("/")
        self.gateway_url = str(settings.ipfs_gateway_url).rstrip("/")
        auth = None
        if settings.ipfs_project_id and settings.ipfs_project_secret:
            auth = (settings.ipfs_project_id, settings.ipfs_project_secret)
        else:
            logger.warning("IPFS credentials not provided, uploads rely on an open node")
        self.client = httpx.AsyncClient(timeout=settings.ipfs_timeout, auth=auth, transport=transport)

    async def store(self, data: bytes, filename: str, content_type: str) -> StoredContent:
        try:
            response = await self.client.post(
                f"{self.api_url}/api/v0/add",
                params={"pin": "true"},
                files={"file": (filename, data, content_type)},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"IPFS add failed: {e.response.status_code} - {e.response.text}")
            raise UpstreamFailure("Failed to upload content") from e
        except httpx.HTTPError as e:
            logger.error(f"IPFS node unreachable: {e}")
            raise UpstreamFailure("Failed to upload content") from e

        payload = response.json()
        logger.info(f"Stored {filename} ({payload.get('Size')} bytes) as {payload['Hash']}")
        return StoredContent(cid=payload["Hash"], size=int(payload.get("Size", len(data))))

    def resolve_url(self, cid: str) -> str:
        return f"{self.gateway_url}/ipfs/{cid}"

    async def close(self) -> None:
        await self.client.aclose()
