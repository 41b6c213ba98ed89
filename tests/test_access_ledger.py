import uuid

import pytest
from sqlalchemy import select

from paystream.core.exceptions import Conflict, NotFound, PaymentRequired
from paystream.models.users import Users
from paystream.models.video_access import VideoAccess
from paystream.services.access_ledger import AccessLedger
from tests.conftest import CREATOR, STRANGER, VIEWER_A, VIEWER_B, grant_access, make_video


async def get_user(sessionmaker, wallet_address):
    async with sessionmaker() as session:
        result = await session.execute(select(Users).where(Users.wallet_address == wallet_address))
        return result.scalar_one_or_none()


async def test_record_payment_grants_access_and_updates_counters(session, sessionmaker):
    video = await make_video(session, price=3)

    access = await grant_access(session, video, VIEWER_A)

    assert access.viewer_wallet == VIEWER_A
    assert access.tokens_paid == 3
    assert access.watch_time == 0
    assert access.refunded is False

    viewer = await get_user(sessionmaker, VIEWER_A)
    creator = await get_user(sessionmaker, CREATOR)
    assert viewer.videos_watched == 1
    assert viewer.tokens_spent == 3
    assert creator.tokens_earned == 3


async def test_duplicate_payment_is_rejected_without_touching_counters(session, sessionmaker):
    video = await make_video(session, price=3)
    first = await grant_access(session, video, VIEWER_A)

    with pytest.raises(Conflict) as exc_info:
        await grant_access(session, video, VIEWER_A)

    assert exc_info.value.record.id == first.id
    viewer = await get_user(sessionmaker, VIEWER_A)
    assert viewer.videos_watched == 1
    assert viewer.tokens_spent == 3


async def test_reused_transaction_signature_is_rejected(session):
    first_video = await make_video(session)
    second_video = await make_video(session)
    ledger = AccessLedger(session)

    await ledger.record_payment(first_video.id, VIEWER_A, 1, "shared-signature", "v1", "a1")
    with pytest.raises(Conflict) as exc_info:
        await ledger.record_payment(second_video.id, VIEWER_A, 1, "shared-signature", "v2", "a2")

    assert exc_info.value.message == "Transaction signature already recorded"


async def test_payment_for_missing_video(session):
    with pytest.raises(NotFound):
        await AccessLedger(session).record_payment(uuid.uuid4(), VIEWER_A, 1, "sig", "v", "a")


async def test_uploader_has_implicit_access(session):
    video = await make_video(session)

    check = await AccessLedger(session).verify_access(video.id, CREATOR)

    assert check.has_access is True
    assert check.is_uploader is True
    assert check.reason == "uploader"


async def test_unpaid_viewer_is_told_the_price(session):
    video = await make_video(session, price=4.5)
    ledger = AccessLedger(session)

    check = await ledger.verify_access(video.id, STRANGER)
    assert check.has_access is False
    assert check.reason == "payment_required"
    assert check.price == 4.5

    with pytest.raises(PaymentRequired) as exc_info:
        await ledger.require_access(video.id, STRANGER)
    assert exc_info.value.to_body()["needsPayment"] is True
    assert exc_info.value.to_body()["price"] == 4.5


async def test_watch_time_never_goes_backwards(session, sessionmaker):
    video = await make_video(session, duration=0)
    access = await grant_access(session, video, VIEWER_A)
    ledger = AccessLedger(session)

    update = await ledger.update_watch_time(access.id, watch_time=45)
    assert update.creator == CREATOR
    assert update.access.watch_time == 45

    await ledger.update_watch_time(access.id, watch_time=20)

    async with sessionmaker() as fresh:
        stored = await fresh.get(VideoAccess, access.id)
    assert stored.watch_time == 45
    assert stored.completed is False


async def test_watch_time_near_the_end_marks_completion(session):
    video = await make_video(session, duration=100)
    access = await grant_access(session, video, VIEWER_A)
    ledger = AccessLedger(session)

    update = await ledger.update_watch_time(access.id, watch_time=91)
    assert update.access.completed is True

    # Completion is sticky.
    update = await ledger.update_watch_time(access.id, completed=False)
    assert update.access.completed is True


async def test_watch_time_for_unknown_access(session):
    with pytest.raises(NotFound):
        await AccessLedger(session).update_watch_time(uuid.uuid4(), watch_time=10)


async def test_list_purchases_pages_newest_first(session):
    first = await make_video(session)
    second = await make_video(session)
    await grant_access(session, first, VIEWER_B)
    await grant_access(session, second, VIEWER_B)

    rows, total = await AccessLedger(session).list_purchases(VIEWER_B, page=1, limit=1)

    assert total == 2
    assert len(rows) == 1
    access, video = rows[0]
    assert access.video_id == video.id
