from __future__ import annotations

"""Relevance scoring for memory retrieval.

Scores are a sum of independent components, multiplied by the entry's
importance and capped at 1.0:

- exact substring match of the whole query in the content: ``+1.0``
- (long-term only) whole query found in the tags: ``+0.7``
- per query word found in the content: ``+0.3``; found in the tags: ``+0.2``
- (long-term only) category bonus when the query mentions the category's
  topic (task / error / tool, English or Japanese): ``+0.2``
- recency: ``max(0, 1 - age / window) * 0.1`` with a 24 hour window for
  working memory and a 30 day window for long-term memory.

Entries scoring ``<= 0.1`` are discarded. Ties are broken by newer timestamp
then id, so ranking a fixed corpus at a fixed ``now`` is fully deterministic.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from ..schemas.domain import MemoryCategory, MemoryEntry

RELEVANCE_THRESHOLD = 0.1

WORKING_RECENCY_WINDOW = timedelta(hours=24)
LONG_TERM_RECENCY_WINDOW = timedelta(days=30)

_CATEGORY_KEYWORDS = {
    MemoryCategory.task_learning: ("task", "タスク"),
    MemoryCategory.error_and_fix: ("error", "エラー"),
    MemoryCategory.tool_usage_pattern: ("tool", "ツール"),
}


def _as_aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def recency_boost(timestamp: datetime, now: datetime, window: timedelta) -> float:
    age = (_as_aware(now) - _as_aware(timestamp)).total_seconds()
    return max(0.0, 1.0 - age / window.total_seconds()) * 0.1


def text_match_score(content: str, tags: str, query: str, *, whole_query_tags: bool) -> float:
    """Exact/partial match component; ``content``, ``tags`` and ``query`` are lowercase."""
    if not query:
        return 0.0
    score = 0.0
    if query in content:
        score += 1.0
    if whole_query_tags and query in tags:
        score += 0.7
    for word in query.split():
        if word in content:
            score += 0.3
        if word in tags:
            score += 0.2
    return score


def category_bonus(category: MemoryCategory, query: str) -> float:
    keywords = _CATEGORY_KEYWORDS.get(category)
    if keywords and any(k in query for k in keywords):
        return 0.2
    return 0.0


def _finish(components: Iterable[float], importance: float) -> float:
    return min(sum(components) * importance, 1.0)


def working_relevance(entry: MemoryEntry, query: str, *, now: datetime) -> float:
    """Relevance of a working-memory entry for ``query``."""
    q = query.strip().lower()
    content = entry.content.lower()
    tags = " ".join(entry.tags).lower()
    return _finish(
        (
            text_match_score(content, tags, q, whole_query_tags=False),
            recency_boost(entry.timestamp, now, WORKING_RECENCY_WINDOW),
        ),
        entry.importance,
    )


def long_term_relevance(entry: MemoryEntry, query: str, *, now: datetime) -> float:
    """Relevance of a long-term entry for ``query``."""
    q = query.strip().lower()
    content = entry.content.lower()
    tags = " ".join(entry.tags).lower()
    return _finish(
        (
            text_match_score(content, tags, q, whole_query_tags=True),
            category_bonus(entry.category, q),
            recency_boost(entry.timestamp, now, LONG_TERM_RECENCY_WINDOW),
        ),
        entry.importance,
    )


def rank(
    entries: Sequence[MemoryEntry],
    query: str,
    *,
    long_term: bool,
    max_results: int,
    now: Optional[datetime] = None,
) -> List[MemoryEntry]:
    """Score, filter and order ``entries`` for ``query``; best first."""
    at = now or datetime.now(timezone.utc)
    score = long_term_relevance if long_term else working_relevance
    scored: List[Tuple[float, MemoryEntry]] = []
    for entry in entries:
        s = score(entry, query, now=at)
        if s > RELEVANCE_THRESHOLD:
            scored.append((s, entry))
    scored.sort(key=lambda pair: (-pair[0], -_as_aware(pair[1].timestamp).timestamp(), pair[1].id))
    return [entry for _, entry in scored[: max(0, max_results)]]
