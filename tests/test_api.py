from feedrank.ranking.types import ALL_KINDS, ContentKind


def _seed(fake_store, make_item):
    fake_store.items = [
        make_item("L1", ContentKind.LONG, author_id="a", tags={"travel"}, likes=3, hours_ago=1),
        make_item("R1", ContentKind.REEL, author_id="a", tags={"travel"}, likes=8, hours_ago=2),
        make_item("R2", ContentKind.REEL, author_id="b", likes=1, hours_ago=3),
        make_item("I1", ContentKind.IMAGE, author_id="b", tags={"food"}, hours_ago=4),
    ]
    fake_store.follows = {"v": ["a"]}


def test_health(test_client):
    res = test_client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_home_feed(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    res = test_client.get("/feed/", params={"user_id": "v", "page_size": 4})
    assert res.status_code == 200
    data = res.json()
    assert data["surface"] == "home_feed"
    assert [i["content_id"] for i in data["items"]] == ["L1", "R1"]
    assert data["items"][0]["kind"] == "long"
    assert data["items"][0]["source_reason"] == "subscription"
    assert data["has_more"] is False


def test_home_feed_serves_cached_page(test_client, fake_store, monkeypatch):
    cached = {
        "surface": "home_feed",
        "items": [],
        "page": 1,
        "page_size": 10,
        "has_more": False,
    }

    async def _hit(viewer_id, page, page_size):
        return cached

    async def _never_rank(*args, **kwargs):
        raise AssertionError("engine should not run on a cache hit")

    monkeypatch.setattr("feedrank.routers.feed.get_cached_page", _hit)
    monkeypatch.setattr(fake_store, "fetch_candidates", _never_rank)
    res = test_client.get("/feed/", params={"user_id": "v"})
    assert res.status_code == 200
    assert res.json()["items"] == []


def test_home_feed_caches_fresh_pages(test_client, fake_store, make_item, monkeypatch):
    _seed(fake_store, make_item)
    stored = {}

    async def _miss(viewer_id, page, page_size):
        return None

    async def _store(viewer_id, page, page_size, payload):
        stored[(viewer_id, page, page_size)] = payload

    monkeypatch.setattr("feedrank.routers.feed.get_cached_page", _miss)
    monkeypatch.setattr("feedrank.routers.feed.set_cached_page", _store)
    res = test_client.get("/feed/", params={"user_id": "v", "page": 1, "page_size": 5})
    assert res.status_code == 200
    assert stored[("v", 1, 5)]["items"][0]["content_id"] == "L1"


def test_personalized_cold_start(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    res = test_client.get("/recommendations/personalized", params={"user_id": "newcomer"})
    assert res.status_code == 200
    data = res.json()
    assert data["cold_start"] is True
    trending = test_client.get("/trending/").json()
    assert [i["content_id"] for i in data["items"]] == [
        i["content_id"] for i in trending["items"]
    ]


def test_up_next_unknown_seed_is_404(test_client):
    res = test_client.get("/recommendations/upnext/missing")
    assert res.status_code == 404
    assert res.json()["code"] == "not_found"


def test_up_next(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    res = test_client.get("/recommendations/upnext/L1")
    assert res.status_code == 200
    assert [i["content_id"] for i in res.json()["items"]] == ["R1"]


def test_subscriptions(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    res = test_client.get("/recommendations/subscriptions", params={"user_id": "v"})
    assert [i["content_id"] for i in res.json()["items"]] == ["L1", "R1"]


def test_trending_reels_only_returns_reels(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    res = test_client.get("/trending/reels", params={"timeframe": "1d"})
    assert res.status_code == 200
    assert {i["kind"] for i in res.json()["items"]} == {"reel"}


def test_trending_rejects_unknown_timeframe(test_client):
    res = test_client.get("/trending/", params={"timeframe": "1y"})
    assert res.status_code == 422


def test_trending_hashtags(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    res = test_client.get("/trending/hashtags")
    assert res.status_code == 200
    tags = res.json()["hashtags"]
    assert tags[0] == {
        "tag": "travel",
        "count": 2,
        "last_24h": 2,
        "prev_24h": 0,
        "growth_pct": 100,
    }


def test_tag_content(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    res = test_client.get("/trending/hashtags/Travel")
    assert res.status_code == 200
    data = res.json()
    assert data["surface"] == "tag_content"
    assert [i["content_id"] for i in data["items"]] == ["L1", "R1"]


def test_trending_creators(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    res = test_client.get("/trending/creators", params={"limit": 1})
    assert res.status_code == 200
    assert res.json()["creators"] == [
        {"author_id": "a", "followers": 1, "posts": 2, "likes": 11, "comments": 0, "score": 211.0}
    ]


def test_home_feed_rejects_pages_past_the_cap(test_client):
    res = test_client.get("/feed/", params={"user_id": "v", "page": 10**6})
    assert res.status_code == 422


def test_all_sources_down_is_503(test_client, fake_store, make_item):
    _seed(fake_store, make_item)
    fake_store.failing_kinds = set(ALL_KINDS)
    res = test_client.get("/recommendations/trending")
    assert res.status_code == 503
    assert res.json()["code"] == "service_degraded"
