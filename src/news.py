# src/news.py
"""
News feed orchestration: user -> preferences -> cache -> upstream API.

Fail-open: any failure while calling the upstream API degrades to an empty
feed and is never cached. Store failures propagate to the caller.
"""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Callable

from src.cache_utils import NewsCache, compute_news_cache_key
from src.clients.news_api import NewsAPIError, search_news
from src.config import get_news_api_key, get_news_api_timeout_s, get_news_cache_ttl_seconds
from src.error_codes import NEWS_API_UNEXPECTED
from src.errors import UserNotFoundError
from src.logging_utils import log_event
from src.normalize import build_news_query, normalize_preferences
from src.repo import get_user_by_email


NEWS_LANGUAGE = "en"
NEWS_SORT_BY = "publishedAt"

STATUS_OK = "ok"
STATUS_CACHED = "cached"
STATUS_DEGRADED = "degraded"

# One cache per process; empty on every start
news_cache = NewsCache(ttl_seconds=get_news_cache_ttl_seconds())


@dataclass
class NewsFeed:
    articles: list = field(default_factory=list)
    status: str = STATUS_OK
    cache_key: str | None = None
    error_code: str | None = None

    @property
    def degraded(self) -> bool:
        return self.status == STATUS_DEGRADED


def get_news_for_user(
    conn: sqlite3.Connection,
    email: str,
    *,
    cache: NewsCache | None = None,
    search: Callable[..., list] | None = None,
) -> NewsFeed:
    """
    Build the preference-filtered feed for an authenticated user.

    Args:
        conn: database connection
        email: identity from the Auth Gate
        cache: defaults to the module-level news_cache
        search: defaults to src.clients.news_api.search_news

    Returns:
        NewsFeed with status "cached" (hit), "ok" (fresh upstream result),
        or "degraded" (upstream call failed in any way, articles == [])

    Raises:
        UserNotFoundError if no user has this email
    """
    cache = news_cache if cache is None else cache
    search = search_news if search is None else search

    user = get_user_by_email(conn, email=email)
    if user is None:
        raise UserNotFoundError()

    preferences = normalize_preferences(user["preferences"])
    cache_key = compute_news_cache_key(user["user_id"], preferences)

    cached = cache.get(cache_key)
    if cached is not None:
        log_event("news_cache_hit", cache_key=cache_key, articles=len(cached))
        return NewsFeed(articles=cached, status=STATUS_CACHED, cache_key=cache_key)
    log_event("news_cache_miss", cache_key=cache_key)

    query = build_news_query(preferences)
    try:
        articles = search(
            query,
            api_key=get_news_api_key(),
            language=NEWS_LANGUAGE,
            sort_by=NEWS_SORT_BY,
            timeout_s=get_news_api_timeout_s(),
        )
    except NewsAPIError as exc:
        log_event("news_api_failed", level="warning", cache_key=cache_key,
                  error_code=exc.error_code, error=str(exc))
        return NewsFeed(articles=[], status=STATUS_DEGRADED, cache_key=cache_key, error_code=exc.error_code)
    except Exception as exc:
        # Exception text may carry the request URL; log the type only
        log_event("news_api_failed", level="error", cache_key=cache_key,
                  error_code=NEWS_API_UNEXPECTED, error_type=type(exc).__name__)
        return NewsFeed(articles=[], status=STATUS_DEGRADED, cache_key=cache_key, error_code=NEWS_API_UNEXPECTED)

    cache.put(cache_key, articles)
    log_event("news_fetched", cache_key=cache_key, query=query, articles=len(articles))
    return NewsFeed(articles=articles, status=STATUS_OK, cache_key=cache_key)
