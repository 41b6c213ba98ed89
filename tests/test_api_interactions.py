from tests.conftest import CREATOR, STRANGER, VIEWER_A, VIEWER_B, VIEWER_C, seed_access, seed_video


async def interact(client, video, viewer, kind, **extra):
    return await client.post(
        f"/interactions/{video.id}",
        json={"userWallet": viewer, "type": kind, **extra},
    )


async def test_interaction_requires_payment(client, sessionmaker):
    video = await seed_video(sessionmaker, price=4)

    response = await interact(client, video, STRANGER, "like")

    assert response.status_code == 403
    body = response.json()
    assert body["needsPayment"] is True
    assert body["price"] == 4


async def test_uploader_can_interact_without_paying(client, sessionmaker):
    video = await seed_video(sessionmaker)

    response = await interact(client, video, CREATOR, "like")

    assert response.status_code == 200
    assert response.json()["data"]["liked"] is True
    assert response.json()["video"]["likeCount"] == 1


async def test_share_without_target_is_rejected(client, sessionmaker):
    video = await seed_video(sessionmaker)
    await seed_access(sessionmaker, video, VIEWER_A)

    missing = await interact(client, video, VIEWER_A, "share")
    assert missing.status_code == 400

    shared = await interact(client, video, VIEWER_A, "share", sharedTo="telegram")
    assert shared.status_code == 200
    assert shared.json()["data"]["sharedTo"] == "telegram"


async def test_dislikes_take_the_video_down_with_refunds(client, sessionmaker):
    video = await seed_video(sessionmaker, price=5, minimum_interactions=2, dislike_threshold=0.5)
    for viewer in (VIEWER_A, VIEWER_B, VIEWER_C):
        await seed_access(sessionmaker, video, viewer)

    first = await interact(client, video, VIEWER_A, "like")
    assert first.json()["refunds"] is None

    second = await interact(client, video, VIEWER_B, "dislike")
    assert second.status_code == 200
    body = second.json()
    assert body["video"]["isActive"] is False
    assert body["video"]["dislikeRatio"] == 0.5
    assert body["refunds"] == {"refunded": 3, "total": 3}

    third = await interact(client, video, VIEWER_C, "like")
    assert third.status_code == 400

    detail = (await client.get(f"/videos/{video.id}")).json()["data"]
    assert detail["takedownReason"] == "dislike_ratio"

    stats = (await client.get(f"/users/{VIEWER_C}/stats")).json()["data"]
    assert stats["tokensRefunded"] == 5


async def test_stats_and_user_state(client, sessionmaker):
    video = await seed_video(sessionmaker)
    await seed_access(sessionmaker, video, VIEWER_A)
    await interact(client, video, VIEWER_A, "dislike")

    stats = (await client.get(f"/interactions/stats/{video.id}")).json()["data"]
    assert stats["dislikeCount"] == 1
    assert stats["likeCount"] == 0

    state = await client.get(f"/interactions/user/{video.id}", params={"userWallet": VIEWER_A})
    assert state.json()["data"]["disliked"] is True

    listed = await client.get(f"/interactions/video/{video.id}", params={"type": "dislike"})
    assert listed.json()["count"] == 1
    assert listed.json()["data"][0]["vote"] == "dislike"


async def test_threshold_update_is_owner_only(client, sessionmaker):
    video = await seed_video(sessionmaker)

    denied = await client.put(
        f"/interactions/threshold/{video.id}",
        json={"userWallet": STRANGER, "dislikeThreshold": 0.2},
    )
    assert denied.status_code == 403

    invalid = await client.put(
        f"/interactions/threshold/{video.id}",
        json={"userWallet": CREATOR, "dislikeThreshold": 2},
    )
    assert invalid.status_code == 400

    updated = await client.put(
        f"/interactions/threshold/{video.id}",
        json={"userWallet": CREATOR, "dislikeThreshold": 0.2, "minimumInteractions": 5},
    )
    assert updated.status_code == 200
    assert updated.json()["data"] == {"dislikeThreshold": 0.2, "minimumInteractions": 5}
