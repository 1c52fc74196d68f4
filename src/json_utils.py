import json
from typing import Any


def safe_parse_json(raw: str) -> Any | None:
    """
    Parse an upstream JSON body safely.

    - Never crash
    - Never return partial garbage
    - Returns None for empty or invalid input instead of guessing
    """

    if not raw or not raw.strip():
        return None

    try:
        return json.loads(raw)
    # Deep nesting raises RecursionError; lone surrogates ValueError
    except (json.JSONDecodeError, RecursionError, ValueError):
        return None


def extract_articles(body: Any) -> list:
    """
    Pull the article list out of a news search response.

    A body that isn't an object, or whose "articles" is missing or not a
    list, yields [] rather than an error.
    """
    if not isinstance(body, dict):
        return []
    articles = body.get("articles")
    return articles if isinstance(articles, list) else []
