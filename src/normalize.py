# src/normalize.py
"""
Preference normalization.
Pure functions: no side effects, no database access.
"""
from __future__ import annotations

from typing import Any


def normalize_preferences(raw: Any) -> list[str]:
    """
    Canonicalize a user's stored preferences into a list of category strings.

    Rules:
    1. Anything that isn't a list/tuple → empty list
    2. A single element containing commas is the legacy storage format
       (["tech, sports"]): split on commas
    3. Every piece is stripped; empty and non-string pieces are dropped

    Order is preserved. Sorting happens when the cache key is built.
    """
    if not isinstance(raw, (list, tuple)):
        return []

    prefs = list(raw)
    if len(prefs) == 1 and isinstance(prefs[0], str) and "," in prefs[0]:
        prefs = prefs[0].split(",")

    return [p.strip() for p in prefs if isinstance(p, str) and p.strip()]


def build_news_query(preferences: list[str]) -> str:
    """OR the categories together so any matching article is returned; "news" if none."""
    if not preferences:
        return "news"
    return " OR ".join(preferences)
