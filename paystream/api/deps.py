from typing import Optional

from paystream.clients.content_store import ContentStore, IpfsContentStore
from paystream.clients.ledger_gateway import HttpLedgerGateway, LedgerGateway
from paystream.core.config import ContentStoreSettings, LedgerSettings, RewardSettings
from paystream.tasks.queue import ArqRewardQueue, RewardQueue
from paystream.utils.security import Authorizer, TrustedAddressAuthorizer

_ledger: Optional[LedgerGateway] = None
_content_store: Optional[ContentStore] = None


def get_ledger_gateway() -> LedgerGateway:
    global _ledger
    if _ledger is None:
        _ledger = HttpLedgerGateway(LedgerSettings())
    return _ledger


def get_content_store() -> ContentStore:
    global _content_store
    if _content_store is None:
        _content_store = IpfsContentStore(ContentStoreSettings())
    return _content_store


def get_content_settings() -> ContentStoreSettings:
    return ContentStoreSettings()


def get_ledger_settings() -> LedgerSettings:
    return LedgerSettings()


def get_reward_settings() -> RewardSettings:
    return RewardSettings()


def get_reward_queue() -> RewardQueue:
    return ArqRewardQueue()


def get_authorizer() -> Authorizer:
    return TrustedAddressAuthorizer()


async def close_clients() -> None:
    global _ledger, _content_store
    if _ledger is not None:
        await _ledger.close()
        _ledger = None
    if _content_store is not None:
        await _content_store.close()
        _content_store = None
