from tests.conftest import CREATOR, STRANGER, VIEWER_A, VIEWER_B, seed_access, seed_video


async def test_comment_thread(client, sessionmaker):
    video = await seed_video(sessionmaker)
    await seed_access(sessionmaker, video, VIEWER_A)
    await client.put(f"/users/{VIEWER_A}", json={"username": "alice"})

    denied = await client.post(f"/comments/{video.id}", json={"userWallet": STRANGER, "content": "hi"})
    assert denied.status_code == 403

    created = await client.post(f"/comments/{video.id}", json={"userWallet": VIEWER_A, "content": "  Great video  "})
    assert created.status_code == 201
    comment = created.json()["data"]
    assert comment["content"] == "Great video"
    assert comment["userName"] == "alice"

    reply = await client.post(
        f"/comments/{video.id}",
        json={"userWallet": CREATOR, "content": "Thanks", "parentId": comment["id"]},
    )
    nested = await client.post(
        f"/comments/{video.id}",
        json={"userWallet": VIEWER_A, "content": "You're welcome", "parentId": reply.json()["data"]["id"]},
    )
    assert nested.json()["data"]["parentId"] == comment["id"]

    top_level = (await client.get(f"/comments/video/{video.id}")).json()
    assert top_level["count"] == 1
    replies = (await client.get(f"/comments/video/{video.id}", params={"parentId": comment["id"]})).json()
    assert replies["count"] == 2

    stats = (await client.get(f"/interactions/stats/{video.id}")).json()["data"]
    assert stats["commentCount"] == 3


async def test_comment_edit_vote_and_delete(client, sessionmaker):
    video = await seed_video(sessionmaker)
    await seed_access(sessionmaker, video, VIEWER_A)
    await seed_access(sessionmaker, video, VIEWER_B)
    created = await client.post(f"/comments/{video.id}", json={"userWallet": VIEWER_A, "content": "first"})
    comment_id = created.json()["data"]["id"]

    not_author = await client.put(f"/comments/{comment_id}", json={"userWallet": VIEWER_B, "content": "edited"})
    assert not_author.status_code == 403
    edited = await client.put(f"/comments/{comment_id}", json={"userWallet": VIEWER_A, "content": "edited"})
    assert edited.json()["data"]["content"] == "edited"

    vote = await client.post(f"/comments/vote/{comment_id}", json={"userWallet": VIEWER_B, "voteType": "upvote"})
    assert vote.json()["data"] == {"upvotes": 1, "downvotes": 0}
    stranger_vote = await client.post(
        f"/comments/vote/{comment_id}", json={"userWallet": STRANGER, "voteType": "downvote"}
    )
    assert stranger_vote.status_code == 403

    by_viewer = await client.request("DELETE", f"/comments/{comment_id}", json={"userWallet": VIEWER_B})
    assert by_viewer.status_code == 403
    by_uploader = await client.request("DELETE", f"/comments/{comment_id}", json={"userWallet": CREATOR})
    assert by_uploader.status_code == 200

    remaining = (await client.get(f"/comments/video/{video.id}")).json()
    assert remaining["count"] == 0
    stats = (await client.get(f"/interactions/stats/{video.id}")).json()["data"]
    assert stats["commentCount"] == 0


async def test_user_profile(client):
    missing = await client.get(f"/users/{VIEWER_A}")
    assert missing.status_code == 404

    created = await client.put(
        f"/users/{VIEWER_A}",
        json={"username": "alice", "bio": "watches things", "socialLinks": {"twitter": "@alice"}},
    )
    assert created.status_code == 200
    assert created.json()["data"]["socialLinks"] == {"twitter": "@alice"}

    updated = await client.put(f"/users/{VIEWER_A}", json={"bio": "watches more things"})
    data = updated.json()["data"]
    assert data["username"] == "alice"
    assert data["bio"] == "watches more things"

    invalid = await client.put("/users/not-a-wallet", json={"username": "bob"})
    assert invalid.status_code == 400


async def test_profile_picture(client, content_store):
    await client.put(f"/users/{VIEWER_A}", json={"username": "alice"})

    response = await client.post(
        f"/users/{VIEWER_A}/profile-picture",
        files={"image": ("me.png", b"png bytes", "image/png")},
    )

    assert response.status_code == 200
    assert response.json()["data"]["profilePicture"] in content_store.stored


async def test_top_creators(client):
    uploaded = await client.post(
        "/videos",
        data={"title": "Pottery", "category": "craft", "price": "8", "uploader": CREATOR},
        files={"video": ("pottery.mp4", b"clay", "video/mp4")},
    )
    video = uploaded.json()["data"]
    await client.post(
        "/payments/record",
        json={
            "videoId": video["id"],
            "viewerWallet": VIEWER_A,
            "tokensPaid": 8,
            "transactionSignature": "sig-pottery",
            "videoPubkey": video["videoPubkey"],
            "accessPubkey": "access-pottery",
        },
    )

    response = await client.get("/users/creators/top")

    body = response.json()
    assert body["count"] == 1
    assert body["data"][0]["walletAddress"] == CREATOR
    assert body["data"][0]["tokensEarned"] == 8
