import hashlib
import itertools
from typing import Dict, List, Tuple

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import paystream.models  # noqa: F401
from paystream.api.deps import (
    get_authorizer,
    get_content_store,
    get_ledger_gateway,
    get_ledger_settings,
    get_reward_queue,
)
from paystream.clients.content_store import ContentStore, StoredContent
from paystream.clients.ledger_gateway import DerivedAddress, LedgerGateway, MintCreation
from paystream.core.config import LedgerSettings
from paystream.db.database import Base, get_db
from paystream.main import app
from paystream.models.videos import Video
from paystream.services.access_ledger import AccessLedger
from paystream.tasks.queue import RewardQueue
from paystream.utils.security import TrustedAddressAuthorizer


def wallet(name: str) -> str:
    """Pads a readable base58 name out to a full-length wallet address."""
    return name.ljust(44, "1")


CREATOR = wallet("Creator")
VIEWER_A = wallet("ViewerA")
VIEWER_B = wallet("ViewerB")
VIEWER_C = wallet("ViewerC")
STRANGER = wallet("Stranger")


class FakeLedgerGateway(LedgerGateway):
    def __init__(self):
        self.balances: Dict[Tuple[str, str], int] = {}
        self.mint_calls: List[dict] = []
        self.created_mints: List[str] = []
        self._signatures = itertools.count(1)

    async def derive_address(self, seeds):
        digest = hashlib.sha256("/".join(seeds).encode()).hexdigest()
        return DerivedAddress(address=f"pda{digest[:40]}", bump=255)

    async def create_mint(self, creator, decimals, creator_token, mint_authority):
        mint = f"mint-{creator[:12]}"
        self.created_mints.append(mint)
        return MintCreation(mint=mint, signature=f"sig-create-{next(self._signatures)}")

    async def mint_to(self, mint, mint_authority, creator, recipient, amount):
        self.mint_calls.append(
            {"mint": mint, "mint_authority": mint_authority, "creator": creator, "recipient": recipient, "amount": amount}
        )
        key = (mint, recipient)
        self.balances[key] = self.balances.get(key, 0) + amount
        return f"sig-mint-{next(self._signatures)}"

    async def get_token_balance(self, mint, owner):
        return self.balances.get((mint, owner), 0)


class FakeContentStore(ContentStore):
    def __init__(self):
        self.stored: Dict[str, bytes] = {}

    async def store(self, data, filename, content_type):
        cid = "Qm" + hashlib.sha256(data).hexdigest()[:44]
        self.stored[cid] = data
        return StoredContent(cid=cid, size=len(data))

    def resolve_url(self, cid):
        return f"https://gateway.test/ipfs/{cid}"


class FakeRewardQueue(RewardQueue):
    def __init__(self):
        self.calls: List[tuple] = []

    async def enqueue(self, viewer_wallet, creator, access_id, watch_time):
        self.calls.append((viewer_wallet, creator, access_id, watch_time))


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'paystream.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def ledger():
    return FakeLedgerGateway()


@pytest.fixture
def content_store():
    return FakeContentStore()


@pytest.fixture
def reward_queue():
    return FakeRewardQueue()


@pytest.fixture
async def client(sessionmaker, ledger, content_store, reward_queue):
    async def override_get_db():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger_gateway] = lambda: ledger
    app.dependency_overrides[get_content_store] = lambda: content_store
    app.dependency_overrides[get_reward_queue] = lambda: reward_queue
    app.dependency_overrides[get_authorizer] = TrustedAddressAuthorizer
    app.dependency_overrides[get_ledger_settings] = lambda: LedgerSettings(LEDGER_API_URL="http://ledger.test")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


_cids = itertools.count(1)


async def make_video(session, uploader=CREATOR, price=2.5, duration=120.0, **fields) -> Video:
    number = next(_cids)
    video = Video(
        title=fields.pop("title", f"Video {number}"),
        description=fields.pop("description", "A test video"),
        category=fields.pop("category", "education"),
        cid=f"QmTestContent{number}",
        price=price,
        uploader=uploader,
        video_pubkey=f"VideoPda{number}",
        duration=duration,
        **fields,
    )
    session.add(video)
    await session.commit()
    await session.refresh(video)
    return video


_signatures = itertools.count(1)


async def grant_access(session, video, viewer, tokens_paid=None):
    return await AccessLedger(session).record_payment(
        video_id=video.id,
        viewer_wallet=viewer,
        tokens_paid=video.price if tokens_paid is None else tokens_paid,
        transaction_signature=f"txsig{next(_signatures)}",
        video_pubkey=video.video_pubkey,
        access_pubkey=f"access-{viewer[:8]}",
    )


async def seed_video(sessionmaker, **fields) -> Video:
    async with sessionmaker() as session:
        return await make_video(session, **fields)


async def seed_access(sessionmaker, video, viewer, tokens_paid=None):
    async with sessionmaker() as session:
        return await grant_access(session, video, viewer, tokens_paid)
