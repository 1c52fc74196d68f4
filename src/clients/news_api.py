from __future__ import annotations

import http.client
import time
import urllib.error
import urllib.parse
import urllib.request

from src.config import get_news_api_url
from src.error_codes import (
    NEWS_API_DISABLED, NEWS_API_TIMEOUT, NEWS_API_HTTP_ERROR,
    NEWS_API_UNREACHABLE, NEWS_API_BAD_RESPONSE, NEWS_API_BAD_URL,
)
from src.json_utils import extract_articles, safe_parse_json
from src.logging_utils import log_event


USER_AGENT = "news-preferences-api/0.1"


class NewsAPIError(Exception):
    """Raised when the news search API can't produce an article list."""

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        super().__init__(message)


def search_news(
    query: str,
    *,
    api_key: str | None,
    language: str = "en",
    sort_by: str = "publishedAt",
    timeout_s: float = 10.0,
) -> list[dict]:
    """
    Search the "everything" endpoint and return the raw article records.

    Contract:
    - Returns a list (possibly empty) on any 2xx JSON response
    - Raises NewsAPIError for everything else, including a missing api_key
    - Never logs the api_key
    """
    if not api_key:
        raise NewsAPIError(NEWS_API_DISABLED, "NEWS_API_KEY not set")

    params = urllib.parse.urlencode({
        "q": query,
        "language": language,
        "sortBy": sort_by,
        "apiKey": api_key,
    })
    t0 = time.perf_counter()
    try:
        req = urllib.request.Request(
            f"{get_news_api_url()}?{params}",
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            status = getattr(resp, "status", None)
            raw = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        raise NewsAPIError(NEWS_API_HTTP_ERROR, f"HTTP {exc.code}") from exc
    except urllib.error.URLError as exc:
        if isinstance(exc.reason, TimeoutError):
            raise NewsAPIError(NEWS_API_TIMEOUT, "timeout") from exc
        raise NewsAPIError(NEWS_API_UNREACHABLE, f"URL error: {exc.reason}") from exc
    except TimeoutError as exc:
        raise NewsAPIError(NEWS_API_TIMEOUT, "timeout") from exc
    except ValueError as exc:
        # Bad NEWS_API_URL; the message would echo the URL, apiKey included
        raise NewsAPIError(NEWS_API_BAD_URL, "NEWS_API_URL is not a valid http(s) URL") from exc
    # Connection reset mid-read, truncated body
    except (OSError, http.client.HTTPException) as exc:
        raise NewsAPIError(NEWS_API_UNREACHABLE, f"{type(exc).__name__}: {exc}") from exc

    if status is not None and not 200 <= status < 300:
        raise NewsAPIError(NEWS_API_HTTP_ERROR, f"HTTP {status}")

    body = safe_parse_json(raw)
    if body is None:
        raise NewsAPIError(NEWS_API_BAD_RESPONSE, "response body is not JSON")

    articles = extract_articles(body)
    log_event(
        "news_api_call",
        status=status,
        articles=len(articles),
        latency_ms=int((time.perf_counter() - t0) * 1000),
    )
    return articles
