"""Tests for the news feed orchestrator (cache + upstream + fail-open)."""

from __future__ import annotations

import sqlite3

import pytest

from src.auth import hash_password
from src.cache_utils import NewsCache
from src.clients.news_api import NewsAPIError
from src.db import get_conn, init_db
from src.error_codes import NEWS_API_DISABLED, NEWS_API_TIMEOUT, NEWS_API_UNEXPECTED
from src.errors import UserNotFoundError
from src.news import (
    STATUS_CACHED, STATUS_DEGRADED, STATUS_OK,
    get_news_for_user,
)
from src.repo import create_user, update_user_preferences


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class FakeSearch:
    """Records every upstream call; returns `articles` or raises `error`."""

    def __init__(self, articles=None, error: Exception | None = None):
        self.articles = articles if articles is not None else [{"title": "A"}]
        self.error = error
        self.calls = []

    def __call__(self, query, **kwargs):
        self.calls.append({"query": query, **kwargs})
        if self.error is not None:
            raise self.error
        return self.articles


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def conn():
    conn = get_conn()
    init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return NewsCache(ttl_seconds=600, clock=clock)


def _make_user(conn, preferences):
    return create_user(
        conn,
        name="A",
        email="a@x.com",
        password_hash=hash_password("pw123456"),
        preferences=preferences,
    )


# -----------------------------------------------------------------------------
# Cache hit / miss
# -----------------------------------------------------------------------------

def test_miss_calls_upstream_and_caches(conn, cache):
    user_id = _make_user(conn, ["tech"])
    search = FakeSearch(articles=[{"title": "T1"}])

    feed = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert feed.status == STATUS_OK
    assert feed.articles == [{"title": "T1"}]
    assert feed.cache_key == f"news:{user_id}:tech"
    assert len(search.calls) == 1
    assert cache.get(f"news:{user_id}:tech") == [{"title": "T1"}]


def test_hit_within_ttl_skips_upstream(conn, cache, clock):
    _make_user(conn, ["tech"])
    search = FakeSearch(articles=[{"title": "T1"}])

    first = get_news_for_user(conn, "a@x.com", cache=cache, search=search)
    clock.now += 599
    second = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert second.status == STATUS_CACHED
    assert second.articles == first.articles
    assert len(search.calls) == 1


def test_stale_entry_refetches(conn, cache, clock):
    _make_user(conn, ["tech"])
    search = FakeSearch()

    get_news_for_user(conn, "a@x.com", cache=cache, search=search)
    clock.now += 600
    feed = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert feed.status == STATUS_OK
    assert len(search.calls) == 2


def test_legacy_and_list_preferences_share_cache_entry(conn, cache):
    user_id = _make_user(conn, ["tech, sports"])
    search = FakeSearch()

    legacy = get_news_for_user(conn, "a@x.com", cache=cache, search=search)
    update_user_preferences(conn, user_id=user_id, preferences=["sports", "tech"])
    proper = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert legacy.cache_key == proper.cache_key == f"news:{user_id}:sports|tech"
    assert proper.status == STATUS_CACHED
    assert len(search.calls) == 1


def test_preference_change_gets_new_key(conn, cache):
    user_id = _make_user(conn, ["tech"])
    search = FakeSearch()

    get_news_for_user(conn, "a@x.com", cache=cache, search=search)
    update_user_preferences(conn, user_id=user_id, preferences=["science"])
    feed = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert feed.cache_key == f"news:{user_id}:science"
    assert len(search.calls) == 2


# -----------------------------------------------------------------------------
# Upstream query
# -----------------------------------------------------------------------------

def test_query_ors_preferences_with_fixed_params(conn, cache, monkeypatch):
    monkeypatch.setenv("NEWS_API_KEY", "k123")
    _make_user(conn, ["tech", "sports"])
    search = FakeSearch()

    get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    call = search.calls[0]
    assert call["query"] == "tech OR sports"
    assert call["language"] == "en"
    assert call["sort_by"] == "publishedAt"
    assert call["api_key"] == "k123"
    assert call["timeout_s"] > 0


def test_no_preferences_uses_generic_query(conn, cache):
    user_id = _make_user(conn, [])
    search = FakeSearch()

    feed = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert search.calls[0]["query"] == "news"
    assert feed.cache_key == f"news:{user_id}:"


# -----------------------------------------------------------------------------
# Fail-open
# -----------------------------------------------------------------------------

def test_upstream_failure_degrades_and_is_not_cached(conn, cache):
    _make_user(conn, ["tech"])
    search = FakeSearch(error=NewsAPIError(NEWS_API_TIMEOUT, "timeout"))

    feed = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert feed.status == STATUS_DEGRADED
    assert feed.degraded is True
    assert feed.articles == []
    assert feed.error_code == NEWS_API_TIMEOUT
    assert len(cache) == 0


def test_genuine_empty_result_is_ok_and_cached(conn, cache):
    _make_user(conn, ["obscure"])
    search = FakeSearch(articles=[])

    feed = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert feed.status == STATUS_OK
    assert feed.degraded is False
    assert feed.articles == []
    assert cache.get(feed.cache_key) == []


def test_degraded_then_recovered(conn, cache):
    _make_user(conn, ["tech"])
    failing = FakeSearch(error=NewsAPIError(NEWS_API_DISABLED, "NEWS_API_KEY not set"))
    working = FakeSearch(articles=[{"title": "T1"}])

    get_news_for_user(conn, "a@x.com", cache=cache, search=failing)
    feed = get_news_for_user(conn, "a@x.com", cache=cache, search=working)

    assert feed.status == STATUS_OK
    assert feed.articles == [{"title": "T1"}]


def test_default_search_without_api_key_degrades(conn, cache):
    _make_user(conn, ["tech"])

    feed = get_news_for_user(conn, "a@x.com", cache=cache)

    assert feed.status == STATUS_DEGRADED
    assert feed.error_code == NEWS_API_DISABLED


@pytest.mark.parametrize("error", [KeyError("boom"), ValueError("unknown url type"), RecursionError()])
def test_unexpected_search_failure_degrades(conn, cache, error):
    _make_user(conn, ["tech"])
    search = FakeSearch(error=error)

    feed = get_news_for_user(conn, "a@x.com", cache=cache, search=search)

    assert feed.status == STATUS_DEGRADED
    assert feed.articles == []
    assert feed.error_code == NEWS_API_UNEXPECTED
    assert len(cache) == 0


# -----------------------------------------------------------------------------
# Errors that must propagate
# -----------------------------------------------------------------------------

def test_unknown_user_raises_not_found(conn, cache):
    search = FakeSearch()

    with pytest.raises(UserNotFoundError):
        get_news_for_user(conn, "ghost@x.com", cache=cache, search=search)
    assert search.calls == []


def test_store_failure_propagates(cache):
    conn = get_conn()
    conn.close()

    with pytest.raises(sqlite3.ProgrammingError):
        get_news_for_user(conn, "a@x.com", cache=cache, search=FakeSearch())
