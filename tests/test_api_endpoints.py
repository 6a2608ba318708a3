import pytest
from fastapi.testclient import TestClient

from conftest import FakeHubbleSession
from decentranet.config import load_config
from decentranet.node_api import create_app


def H(fid):
    return {"X-DecentraNet-Fid": str(fid)}


@pytest.fixture
def api(tmp_path, monkeypatch, hubble_session):
    monkeypatch.delenv("DECENTRANET_DATA_DIR", raising=False)
    monkeypatch.delenv("USE_NEYNAR_API", raising=False)
    cfg = load_config(str(tmp_path))
    cfg["sync"]["delay_sec"] = 0
    return TestClient(create_app(cfg, hubble_session=hubble_session))


def _topic(api, fid=1, **kw):
    body = {"title": "Open data", "content": "Let's share", "categoryId": "general", **kw}
    resp = api.post("/forum/topics", json=body, headers=H(fid))
    assert resp.status_code == 201, resp.text
    return resp.json()["topic"]


def test_health(api):
    assert api.get("/health").json()["ok"]


def test_categories(api):
    cats = api.get("/forum/categories").json()["categories"]
    assert cats[0]["id"] == "general"
    assert cats[0]["topicCount"] == 0


def test_topic_flow(api):
    topic = _topic(api)
    assert topic["authorFid"] == 1
    assert topic["categoryId"] == "general"

    r1 = api.post("/forum/replies", json={"topicId": topic["id"], "content": "first"}, headers=H(2)).json()["reply"]
    api.post(
        "/forum/replies",
        json={"topicId": topic["id"], "content": "nested", "parentId": r1["id"]},
        headers=H(3),
    )

    data = api.get(f"/forum/topics/{topic['id']}").json()
    assert data["topic"]["viewCount"] == 1
    assert data["topic"]["replyCount"] == 2
    assert [r["content"] for r in data["replies"]] == ["first", "nested"]
    assert [r["depth"] for r in data["replies"]] == [0, 1]

    listed = api.get("/forum/topics", params={"categoryId": "general"}).json()["topics"]
    assert [t["id"] for t in listed] == [topic["id"]]


def test_identity_header_required(api):
    resp = api.post("/forum/topics", json={"title": "t", "content": "c", "categoryId": "general"})
    assert resp.status_code == 422
    resp = api.post("/forum/topics", json={"title": "t", "content": "c", "categoryId": "general"}, headers=H("bob"))
    assert resp.status_code == 401


def test_vote_status_mapping(api):
    topic = _topic(api)
    url = f"/forum/topics/{topic['id']}/vote"

    ok = api.post(url, json={"value": 1}, headers=H(2))
    assert ok.status_code == 200
    assert ok.json()["score"] == 1

    dup = api.post(url, json={"value": -1}, headers=H(2))
    assert dup.status_code == 409
    assert dup.json()["detail"]["error"] == "duplicate_vote"

    assert api.post(url, json={"value": 1}, headers=H(1)).status_code == 403
    assert api.post(url, json={"value": 3}, headers=H(4)).status_code == 400
    assert api.post(url, json={"value": True}, headers=H(4)).status_code == 422
    assert api.post("/forum/topics/topic-missing/vote", json={"value": 1}, headers=H(4)).status_code == 404


def test_unknown_topic_and_category(api):
    assert api.get("/forum/topics/topic-missing").status_code == 404
    resp = api.post("/forum/topics", json={"title": "t", "content": "c", "categoryId": "memes"}, headers=H(1))
    assert resp.status_code == 404


def test_research_review_flow(api):
    resp = api.post(
        "/research/contributions",
        json={
            "title": "Soil microbiome",
            "abstract": "We sampled soil.",
            "content": "Full text",
            "tags": ["biology"],
            "links": [{"type": "dataset", "url": "https://data.example/soil"}],
        },
        headers=H(1),
    )
    assert resp.status_code == 201, resp.text
    cid = resp.json()["contribution"]["id"]

    for fid in (10, 11, 12):
        r = api.post(f"/research/contributions/{cid}/reviews", json={"content": "good", "rating": 5}, headers=H(fid))
        assert r.status_code == 201, r.text
    assert r.json()["contribution"]["status"] == "verified"

    reviews = api.get(f"/research/contributions/{cid}/reviews").json()["reviews"]
    assert {rv["reviewerFid"] for rv in reviews} == {10, 11, 12}

    assert api.post(f"/research/contributions/{cid}/reviews", json={"content": "x", "rating": 5}, headers=H(1)).status_code == 403
    assert api.get("/tokens/balance/1").json()["balance"] == 150

    vote = api.post(f"/research/reviews/{reviews[0]['id']}/vote", json={"value": 1}, headers=H(30))
    assert vote.json()["upvotes"] == 1

    filtered = api.get("/research/contributions", params={"tags": "biology,x", "status": "verified"}).json()
    assert [c["id"] for c in filtered["contributions"]] == [cid]


def test_link_farcaster_hash_author_only(api):
    cid = api.post(
        "/research/contributions",
        json={"title": "t", "abstract": "a", "content": "c"},
        headers=H(1),
    ).json()["contribution"]["id"]

    url = f"/research/contributions/{cid}/farcaster"
    assert api.post(url, json={"farcasterHash": "0xabc123456789"}, headers=H(2)).status_code == 403
    resp = api.post(url, json={"farcasterHash": "0xabc123456789"}, headers=H(1))
    assert resp.json()["contribution"]["farcasterHash"] == "0xabc123456789"
    assert api.get("/research/contributions/nope").status_code == 404


def test_tokens_and_reputation(api):
    api.post("/research/contributions", json={"title": "t", "abstract": "a", "content": "c"}, headers=H(1))

    resp = api.post("/tokens/transfer", json={"toFid": 2, "amount": 20}, headers=H(1))
    assert resp.status_code == 200, resp.text
    assert resp.json()["balance"] == 30

    assert api.post("/tokens/transfer", json={"toFid": 2, "amount": 100}, headers=H(1)).status_code == 400
    assert api.post("/tokens/transfer", json={"toFid": 2, "amount": -1}, headers=H(1)).status_code == 422

    history = api.get("/tokens/history/1", params={"limit": 1}).json()["transactions"]
    assert history[0]["fromFid"] == 1 and history[0]["toFid"] == 2

    rep = api.get("/reputation/1").json()["reputation"]
    assert rep["reputationScore"] == 20
    assert api.get("/reputation/999").json()["reputation"]["reputationScore"] == 0


def test_sync_topics_endpoint(api, hubble_session):
    _topic(api)
    resp = api.post("/sync/topics")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "stats": {"total": 1, "synced": 1, "failed": 0}, "errors": []}
    assert len(hubble_session.posted("/v1/submitMessage")) == 1


def test_sync_all_endpoint(api):
    _topic(api)
    body = api.post("/sync/all").json()
    assert body["success"] is True
    assert body["stats"]["topics"] == {"total": 1, "synced": 1, "failed": 0}


def test_sync_with_unreachable_hubble(tmp_path, monkeypatch):
    monkeypatch.delenv("USE_NEYNAR_API", raising=False)
    cfg = load_config(str(tmp_path))
    api = TestClient(create_app(cfg, hubble_session=FakeHubbleSession(down=True)))

    body = api.post("/sync/all", json={"hubbleUrl": "http://hub.example:2281"}).json()
    assert body["success"] is False
    assert "hub.example" in body["errors"][0]


def test_sync_unknown_category(api):
    assert api.post("/sync/polls").status_code == 404


def test_nominate_contribution(api):
    cid = api.post(
        "/research/contributions",
        json={"title": "t", "abstract": "a", "content": "c", "tags": ["astro"]},
        headers=H(1),
    ).json()["contribution"]["id"]
    url = f"/research/contributions/{cid}/nominate"

    resp = api.post(url, headers=H(2))
    assert resp.status_code == 200, resp.text
    assert resp.json()["contribution"]["nominations"] == [2]
    assert api.get("/tokens/balance/1").json()["balance"] == 75

    assert api.post(url, json={"category": "physics"}, headers=H(2)).status_code == 409
    assert api.post(url, headers=H(1)).status_code == 403
    assert api.post("/research/contributions/nope/nominate", headers=H(2)).status_code == 404


def test_casts_and_follows(api):
    resp = api.post("/casts", json={"text": "gm", "mentions": [2]}, headers=H(1))
    assert resp.status_code == 201, resp.text
    assert resp.json()["cast"]["fid"] == 1
    assert api.post("/casts", json={"text": " "}, headers=H(1)).status_code == 400
    assert [c["text"] for c in api.get("/casts", params={"fid": 1}).json()["casts"]] == ["gm"]

    follow = api.post("/users/follow", json={"targetFid": 2}, headers=H(1))
    assert follow.json()["follow"]["followingFid"] == 2
    assert follow.json()["following"] == 1
    assert api.post("/users/follow", json={"targetFid": 1}, headers=H(1)).status_code == 400
    assert api.get("/users/2/followers").json()["followers"] == [1]
    assert api.get("/users/1/following").json()["following"] == [2]

    body = api.post("/sync/all").json()
    assert body["stats"]["casts"]["synced"] == 1
    assert body["stats"]["follows"]["synced"] == 1
